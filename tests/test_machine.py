import pytest

from archlab.arm.machine import (
    ARM_REGS,
    MEM_DATA_START,
    MEM_STACK_START,
    MEM_TEXT_SIZE,
    MEM_TEXT_START,
    CpuState,
    Machine,
    Memory,
    ProgramLoadError,
)


@pytest.mark.parametrize("address", [MEM_TEXT_START, MEM_DATA_START, MEM_STACK_START])
def test_memory_round_trip_in_each_region(address):
    mem = Memory()
    mem.write_32(address, 0xDEADBEEF)
    assert mem.read_32(address) == 0xDEADBEEF


def test_fresh_memory_reads_zero():
    mem = Memory()
    assert mem.read_32(MEM_DATA_START + 8) == 0


def test_unmapped_address_reads_zero_and_ignores_writes():
    mem = Memory()
    mem.write_32(0x100, 0x12345678)
    assert mem.read_32(0x100) == 0


def test_words_are_little_endian():
    mem = Memory()
    mem.write_32(MEM_DATA_START, 0x11223344)
    assert mem.read_32(MEM_DATA_START + 1) == 0x00112233
    assert mem.read_32(MEM_DATA_START + 3) & 0xFF == 0x11


def test_write_masks_to_32_bits():
    mem = Memory()
    mem.write_32(MEM_DATA_START, 0x1_FFFF_FFFF)
    assert mem.read_32(MEM_DATA_START) == 0xFFFFFFFF


def test_last_byte_of_region_is_readable():
    mem = Memory()
    last = MEM_TEXT_START + MEM_TEXT_SIZE - 1
    mem.write_32(last, 0xAABBCCDD)
    assert mem.read_32(last) == 0xAABBCCDD


def test_cpu_state_copy_is_independent():
    state = CpuState(pc=4, flag_n=1)
    state.regs[3] = 7
    clone = state.copy()
    clone.regs[3] = 9
    clone.pc = 8
    assert state.regs[3] == 7
    assert state.pc == 4
    assert clone.flag_n == 1
    assert len(clone.regs) == ARM_REGS


def test_load_words_sets_pc_and_next_state():
    machine = Machine()
    count = machine.load_words([0xD4400000, 0x91000421])
    assert count == 2
    assert machine.current_state.pc == MEM_TEXT_START
    assert machine.next_state == machine.current_state
    assert machine.memory.read_32(MEM_TEXT_START + 4) == 0x91000421
    assert machine.run_bit


def test_load_program_reads_hex_words(tmp_path):
    program = tmp_path / "prog.x"
    program.write_text("d4400000\n0x91000421\n")
    machine = Machine()
    assert machine.load_program(program) == 2
    assert machine.memory.read_32(MEM_TEXT_START) == 0xD4400000
    assert machine.memory.read_32(MEM_TEXT_START + 4) == 0x91000421


def test_load_program_empty_file(tmp_path):
    program = tmp_path / "empty.x"
    program.write_text("")
    machine = Machine()
    assert machine.load_program(program) == 0
    assert machine.current_state.pc == MEM_TEXT_START


def test_load_program_malformed(tmp_path):
    program = tmp_path / "bad.x"
    program.write_text("d4400000\nnothex\n")
    with pytest.raises(ProgramLoadError):
        Machine().load_program(program)


def test_load_program_missing_file(tmp_path):
    with pytest.raises(ProgramLoadError):
        Machine().load_program(tmp_path / "missing.x")