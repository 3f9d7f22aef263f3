import pytest

from archlab.arm.decoder import (
    OPCODE_TABLE,
    DecodeError,
    InstrType,
    decode_instruction,
    format_binary,
)


def test_hlt():
    decoded = decode_instruction(0xD4400000)
    assert decoded.type is InstrType.BRANCH
    assert decoded.opcode == 0b11010100010


def test_add_immediate_fields():
    imm, rn, rd = 0x123, 4, 9
    word = (0b1001000100 << 22) | (imm << 10) | (rn << 5) | rd
    decoded = decode_instruction(word)
    assert decoded.type is InstrType.IMMEDIATE
    assert decoded.opcode == 0b1001000100
    assert (decoded.alu_immediate, decoded.rn, decoded.rd) == (imm, rn, rd)


def test_register_format_fields():
    rm, shamt, rn, rd = 17, 5, 3, 30
    word = (0b10101011000 << 21) | (rm << 16) | (shamt << 10) | (rn << 5) | rd
    decoded = decode_instruction(word)
    assert decoded.type is InstrType.REGISTER
    assert (decoded.rm, decoded.shamt, decoded.rn, decoded.rd) == (rm, shamt, rn, rd)
    assert decoded.alu_immediate == 0


def test_data_transfer_fields():
    addr, op, rn, rt = 0x1FF, 2, 7, 12
    word = (0b11111000000 << 21) | (addr << 12) | (op << 10) | (rn << 5) | rt
    decoded = decode_instruction(word)
    assert decoded.type is InstrType.DATA_TRANSFER
    assert (decoded.dt_address, decoded.op, decoded.rn, decoded.rt) == (addr, op, rn, rt)


def test_branch_address():
    target = 0x2ABCDEF
    decoded = decode_instruction((0b000101 << 26) | target)
    assert decoded.type is InstrType.BRANCH
    assert decoded.br_address == target


def test_conditional_branch_fields():
    address, cond = 0x7FFFF, 0b1101
    word = (0b01010100 << 24) | (address << 5) | cond
    decoded = decode_instruction(word)
    assert decoded.type is InstrType.CONDITIONAL_BRANCH
    assert (decoded.cond_branch_address, decoded.rt) == (address, cond)


def test_movz_fields():
    imm, rd = 0xBEEF, 2
    decoded = decode_instruction((0b11010010100 << 21) | (imm << 5) | rd)
    assert decoded.type is InstrType.IMMEDIATE_WIDE
    assert (decoded.mov_immediate, decoded.rd) == (imm, rd)


@pytest.mark.parametrize("entry", OPCODE_TABLE)
def test_every_table_entry_decodes_to_its_own_kind(entry):
    word = entry.opcode << (32 - entry.length)
    decoded = decode_instruction(word)
    assert decoded.type is entry.kind


def test_unknown_instruction_raises():
    with pytest.raises(DecodeError):
        decode_instruction(0)


def test_format_binary_groups():
    text = format_binary(0xF0000001)
    assert text.split() == ["1111", "0000", "0000", "0000", "0000", "0000", "0000", "0001"]
    assert text.endswith(" ")
    assert len(text) == 40


def test_format_binary_masks_to_32_bits():
    assert format_binary(1 << 32) == format_binary(0)