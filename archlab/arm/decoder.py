"""Decoding of 32-bit ARM instruction words into their fields."""

import enum
from dataclasses import dataclass
from typing import NamedTuple


class InstrType(enum.IntEnum):
    """Instruction format families."""

    REGISTER = 0
    IMMEDIATE = 1
    DATA_TRANSFER = 2
    BRANCH = 3
    CONDITIONAL_BRANCH = 4
    IMMEDIATE_WIDE = 5


class DecodeError(ValueError):
    """Raised when an instruction word matches no known opcode."""


class _OpcodeEntry(NamedTuple):
    opcode: int
    length: int
    kind: InstrType


OPCODE_TABLE = (
    _OpcodeEntry(0b10001011000, 11, InstrType.REGISTER),  # ADD extended
    _OpcodeEntry(0b10101011000, 11, InstrType.REGISTER),  # ADDS extended
    _OpcodeEntry(0b10011011000, 11, InstrType.REGISTER),  # MUL
    _OpcodeEntry(0b11101011000, 11, InstrType.REGISTER),  # SUBS extended
    _OpcodeEntry(0b11101010000, 11, InstrType.REGISTER),  # ANDS shifted
    _OpcodeEntry(0b11001010000, 11, InstrType.REGISTER),  # EOR shifted
    _OpcodeEntry(0b11110001100, 11, InstrType.REGISTER),  # ORR shifted
    _OpcodeEntry(0b11111010010, 11, InstrType.IMMEDIATE),  # CMP immediate
    _OpcodeEntry(0b1001000100, 10, InstrType.IMMEDIATE),  # ADD immediate
    _OpcodeEntry(0b1101001101, 10, InstrType.IMMEDIATE),  # shift
    _OpcodeEntry(0b1011000100, 10, InstrType.IMMEDIATE),  # ADDS immediate
    _OpcodeEntry(0b1101000100, 10, InstrType.IMMEDIATE),  # SUBS immediate
    _OpcodeEntry(0b11111000000, 11, InstrType.DATA_TRANSFER),  # STUR
    _OpcodeEntry(0b00111000000, 11, InstrType.DATA_TRANSFER),  # STURB
    _OpcodeEntry(0b01111000000, 11, InstrType.DATA_TRANSFER),  # STURH
    _OpcodeEntry(0b1111000010, 10, InstrType.DATA_TRANSFER),  # LDUR
    _OpcodeEntry(0b01111000010, 11, InstrType.DATA_TRANSFER),  # LDURH
    _OpcodeEntry(0b00111000010, 11, InstrType.DATA_TRANSFER),  # LDURB
    _OpcodeEntry(0b11010100010, 11, InstrType.BRANCH),  # HLT
    _OpcodeEntry(0b1101011, 7, InstrType.BRANCH),  # BR
    _OpcodeEntry(0b000101, 6, InstrType.BRANCH),  # B
    _OpcodeEntry(0b01010100, 8, InstrType.CONDITIONAL_BRANCH),  # B.cond
    _OpcodeEntry(0b10111001, 8, InstrType.CONDITIONAL_BRANCH),  # CBNZ
    _OpcodeEntry(0b10110100, 8, InstrType.CONDITIONAL_BRANCH),  # CBZ
    _OpcodeEntry(0b11010010100, 11, InstrType.IMMEDIATE_WIDE),  # MOVZ
)


@dataclass(frozen=True)
class DecodedInstruction:
    """Fields of a decoded instruction; fields its format lacks stay 0."""

    opcode: int
    type: InstrType
    rm: int = 0
    shamt: int = 0
    rn: int = 0
    rd: int = 0
    alu_immediate: int = 0
    dt_address: int = 0
    op: int = 0
    rt: int = 0
    br_address: int = 0
    cond_branch_address: int = 0
    mov_immediate: int = 0


def _bits(word: int, shift: int, width: int) -> int:
    return (word >> shift) & ((1 << width) - 1)


def decode_instruction(word: int) -> DecodedInstruction:
    """Match ``word`` against the opcode table, first match winning."""
    word &= 0xFFFFFFFF
    for entry in OPCODE_TABLE:
        if word >> (32 - entry.length) != entry.opcode:
            continue
        kind = entry.kind
        if kind is InstrType.REGISTER:
            return DecodedInstruction(
                entry.opcode,
                kind,
                rm=_bits(word, 16, 5),
                shamt=_bits(word, 10, 5),
                rn=_bits(word, 5, 5),
                rd=_bits(word, 0, 5),
            )
        if kind is InstrType.IMMEDIATE:
            return DecodedInstruction(
                entry.opcode,
                kind,
                alu_immediate=_bits(word, 10, 12),
                rn=_bits(word, 5, 5),
                rd=_bits(word, 0, 5),
            )
        if kind is InstrType.DATA_TRANSFER:
            return DecodedInstruction(
                entry.opcode,
                kind,
                dt_address=_bits(word, 12, 9),
                op=_bits(word, 10, 2),
                rn=_bits(word, 5, 5),
                rt=_bits(word, 0, 5),
            )
        if kind is InstrType.BRANCH:
            return DecodedInstruction(entry.opcode, kind, br_address=_bits(word, 0, 26))
        if kind is InstrType.CONDITIONAL_BRANCH:
            return DecodedInstruction(
                entry.opcode,
                kind,
                cond_branch_address=_bits(word, 5, 19),
                rt=_bits(word, 0, 5),
            )
        return DecodedInstruction(
            entry.opcode,
            kind,
            mov_immediate=_bits(word, 5, 16),
            rd=_bits(word, 0, 5),
        )
    raise DecodeError(f"unknown instruction 0x{word:08x}")


def format_binary(n: int) -> str:
    """Render the low 32 bits of ``n`` in groups of four, each followed by a space."""
    bits = format(n & 0xFFFFFFFF, "032b")
    return "".join(bits[i : i + 4] + " " for i in range(0, 32, 4))