"""Execution of decoded ARM instructions against a simulated machine.

Every handler reads the current CPU state and writes the next one. The
shell's cycle later makes the next state current.
"""

from archlab.arm.decoder import (
    DecodedInstruction,
    InstrType,
    decode_instruction,
    format_binary,
)

_M32 = 0xFFFFFFFF
_M64 = 0xFFFFFFFFFFFFFFFF


def _u64(value: int) -> int:
    return value & _M64


def _s64(value: int) -> int:
    value &= _M64
    return value - (1 << 64) if value >> 63 else value


def _s32(value: int) -> int:
    value &= _M32
    return value - (1 << 32) if value >> 31 else value


def _advance(machine) -> None:
    machine.next_state.pc = _u64(machine.current_state.pc + 4)


def _branch_to(machine, offset: int) -> None:
    machine.next_state.pc = _u64(machine.current_state.pc + offset)


def _cond_offset(decoded: DecodedInstruction, test_field: bool) -> int:
    """Word offset of a conditional branch, scaled to bytes and sign-extended.

    B.EQ tests bit 18 of the raw field; the other conditional branches test
    bit 18 of the already scaled offset.
    """
    offset = (decoded.cond_branch_address << 2) & _M32
    probe = decoded.cond_branch_address if test_field else offset
    if probe & 0x40000:
        offset |= 0xFFFC0000
    return _s32(offset)


# Arithmetic and logic -------------------------------------------------------


def _set_flags_from_current_rd(machine, rd: int) -> None:
    old = machine.current_state.regs[rd]
    machine.next_state.flag_z = int(old == 0)
    machine.next_state.flag_n = int(_s64(old) < 0)


def _adds_extended(machine, d):
    print("ADD_Extended")
    regs = machine.current_state.regs
    result = _u64(_u64(regs[d.rn]) + _u64(regs[d.rm]))
    machine.next_state.regs[d.rd] = result & _M32
    _set_flags_from_current_rd(machine, d.rd)
    _advance(machine)


def _adds_immediate(machine, d):
    print("ADD Immediate")
    regs = machine.current_state.regs
    result = _u64(_u64(regs[d.rn]) + d.alu_immediate)
    machine.next_state.regs[d.rd] = result & _M32
    _set_flags_from_current_rd(machine, d.rd)
    _advance(machine)


def _subs_immediate(machine, d):
    print("SUBS Immediate")
    regs = machine.current_state.regs
    result = _u64(_u64(regs[d.rn]) - d.alu_immediate)
    machine.next_state.regs[d.rd] = result & _M32
    _set_flags_from_current_rd(machine, d.rd)
    _advance(machine)


def _subs_extended(machine, d):
    print("SUBS Extended")
    regs = machine.current_state.regs
    nxt = machine.next_state
    result = _s64(regs[d.rn] - regs[d.rm])
    if d.rd == 31:
        print("CMP ext")
    else:
        print("SUB")
        nxt.regs[d.rd] = result
    nxt.flag_n = int(result < 0)
    nxt.flag_z = int(result == 0)
    _advance(machine)


def _cmp_immediate(machine, d):
    print("CMP Immediate")
    regs = machine.current_state.regs
    result = _u64(_u64(regs[d.rn]) - d.alu_immediate) & _M32
    machine.next_state.flag_z = int(result == 0)
    machine.next_state.flag_n = 0  # an unsigned 32-bit result is never negative
    _advance(machine)


def _ands_shifted(machine, d):
    print("ANDS Shifted")
    regs = machine.current_state.regs
    result = (regs[d.rn] & regs[d.rm]) & _M32
    machine.next_state.regs[d.rd] = result
    machine.next_state.flag_z = int(result == 0)
    machine.next_state.flag_n = 0
    _advance(machine)


def _eor_shifted(machine, d):
    print("EOR Shifted")
    regs = machine.current_state.regs
    machine.next_state.regs[d.rd] = (regs[d.rn] ^ regs[d.rm]) & _M32
    _advance(machine)


def _orr_shifted(machine, d):
    print("ORR Shifted")
    regs = machine.current_state.regs
    machine.next_state.regs[d.rd] = (regs[d.rn] | regs[d.rm]) & _M32
    _advance(machine)


def _add_extended(machine, d):
    print("ADD Extended")
    regs = machine.current_state.regs
    machine.next_state.regs[d.rd] = (_u64(regs[d.rn]) + _u64(regs[d.rm])) & _M32
    _advance(machine)


def _add_immediate(machine, d):
    print("ADD Immediate")
    regs = machine.current_state.regs
    machine.next_state.regs[d.rd] = (_u64(regs[d.rn]) + d.alu_immediate) & _M32
    _advance(machine)


def _adds_immediate_dispatched(machine, d):
    print("ADD Immediate")
    _adds_immediate(machine, d)


def _mul(machine, d):
    print("MUL")
    regs = machine.current_state.regs
    result = _u64(_u64(regs[d.rn]) * _u64(regs[d.rm]))
    machine.next_state.regs[d.rd] = result & _M32
    _advance(machine)
    print(f"MUL: X{d.rd} = X{d.rn} * X{d.rm} = 0x{result:016x}")


def _shift(machine, d):
    print("Shift")
    immr = (d.alu_immediate >> 6) & 0x3F
    imms = d.alu_immediate & 0x3F
    source = _u64(machine.current_state.regs[d.rn])
    if imms != 63:
        result = _u64(source << (63 - imms))
    else:
        result = source >> immr
    machine.next_state.regs[d.rd] = _s64(result)
    _advance(machine)


def _movz(machine, d):
    print("MOVZ")
    nxt = machine.next_state
    nxt.regs[d.rd] = d.mov_immediate
    nxt.flag_n = int(nxt.regs[d.rd] < 0)
    nxt.flag_z = int(nxt.regs[d.rd] == 0)
    _advance(machine)


# Loads and stores -----------------------------------------------------------


def _address(machine, d) -> int:
    return _u64(machine.current_state.regs[d.rn] + d.dt_address)


def _ldurb(machine, d):
    print("LDURB")
    address = _address(machine, d)
    byte_value = machine.memory.read_32(address) & 0xFF
    machine.next_state.regs[d.rt] = byte_value
    _advance(machine)
    print(
        f"LDURB: Loaded byte 0x{byte_value:02x} from address 0x{address:016x} into W{d.rt}"
    )


def _ldur(machine, d):
    print("LDUR")
    address = _address(machine, d)
    memory = machine.memory
    value = memory.read_32(address) | (memory.read_32(_u64(address + 4)) << 32)
    machine.next_state.regs[d.rt] = _s64(value)
    _advance(machine)
    print(f"LDUR: Loaded 0x{value:016x} from address 0x{address:016x} into X{d.rt}")


def _sturh(machine, d):
    print("STURH")
    address = _address(machine, d)
    memory = machine.memory
    halfword = machine.current_state.regs[d.rt] & 0xFFFF
    lower, upper = halfword & 0xFF, (halfword >> 8) & 0xFF
    memory.write_32(address, (memory.read_32(address) & 0xFFFFFF00) | lower)
    second = _u64(address + 1)
    memory.write_32(second, (memory.read_32(second) & 0xFFFFFF00) | upper)
    _advance(machine)
    print(
        f"STURH: Stored halfword 0x{halfword:04x} from W{d.rt} into address 0x{address:016x}"
    )


def _sturb(machine, d):
    print("STURB")
    address = _address(machine, d)
    memory = machine.memory
    byte_value = machine.current_state.regs[d.rt] & 0xFF
    memory.write_32(address, (memory.read_32(address) & 0xFFFFFF00) | byte_value)
    _advance(machine)
    print(
        f"STURB: Stored byte 0x{byte_value:02x} from X{d.rt} into address 0x{address:016x}"
    )


def _stur(machine, d):
    print("STUR")
    address = _address(machine, d)
    value = _u64(machine.current_state.regs[d.rt])
    machine.memory.write_32(address, value & _M32)
    machine.memory.write_32(_u64(address + 4), (value >> 32) & _M32)
    _advance(machine)
    print(f"STUR: Stored 0x{value:016x} from X{d.rt} into address 0x{address:016x}")


# Branches -------------------------------------------------------------------


def _hlt(machine, d):
    machine.run_bit = False
    print("Simulación detenida. Volviendo al shell...")


def _b(machine, d):
    print("B")
    var = d.br_address & 0x3FFFFFF
    if var & (1 << 25):
        var -= 1 << 26
    _branch_to(machine, var << 2)
    print(f"B: Branching to address 0x{machine.next_state.pc:016x}")


def _br(machine, d):
    print("BR")
    machine.next_state.pc = _u64(machine.current_state.regs[d.rn])
    print(f"BR: Branching to address 0x{machine.next_state.pc:016x}")


def _conditional(machine, d, name: str, taken: bool, test_field: bool = False):
    print(name)
    if taken:
        _branch_to(machine, _cond_offset(d, test_field))
    else:
        _advance(machine)


def _b_cond(machine, d):
    print("B_cond")
    cur = machine.current_state
    n, z = cur.flag_n, cur.flag_z
    cond = d.rt
    if cond == 0b0000:
        _conditional(machine, d, "B_equal", z == 1, test_field=True)
    elif cond == 0b0001:
        _conditional(machine, d, "B_not_equal", z == 0)
    elif cond == 0b1100:
        _conditional(machine, d, "B_greater", n == 0 and z == 0)
    elif cond == 0b1011:
        _conditional(machine, d, "B_less", n == 1)
    elif cond == 0b1010:
        _conditional(machine, d, "B_greater_equal", n == 0)
    elif cond == 0b1101:
        _conditional(machine, d, "B_less_equal", n == 1 or z == 1)


def _cbz(machine, d):
    _conditional(machine, d, "CBZ", machine.current_state.regs[d.rt] == 0)


def _cbnz(machine, d):
    _conditional(machine, d, "CBNZ", machine.current_state.regs[d.rt] != 0)


_HANDLERS = {
    InstrType.REGISTER: {
        0b10001011000: _add_extended,
        0b10101011000: _adds_extended,
        0b10011011000: _mul,
        0b11101011000: _subs_extended,
        0b11101010000: _ands_shifted,
        0b11001010000: _eor_shifted,
        0b11110001100: _orr_shifted,
    },
    InstrType.IMMEDIATE: {
        0b1001000100: _add_immediate,
        0b1101001101: _shift,
        0b11111010010: _cmp_immediate,
        0b1011000100: _adds_immediate_dispatched,
        0b1101000100: _subs_immediate,
    },
    InstrType.DATA_TRANSFER: {
        0b11111000000: _stur,
        0b00111000000: _sturb,
        0b01111000000: _sturh,
        0b1111000010: _ldur,
        0b00111000010: _ldurb,
    },
    InstrType.BRANCH: {
        0b11010100010: _hlt,
        0b1101011: _br,
        0b000101: _b,
    },
    InstrType.CONDITIONAL_BRANCH: {
        0b10111001: _cbnz,
        0b10110100: _cbz,
        0b01010100: _b_cond,
    },
    InstrType.IMMEDIATE_WIDE: {
        0b11010010100: _movz,
    },
}


def execute(machine, decoded: DecodedInstruction) -> None:
    """Carry out one decoded instruction; opcodes without a handler do nothing."""
    handler = _HANDLERS.get(decoded.type, {}).get(decoded.opcode)
    if handler is not None:
        handler(machine, decoded)


def process_instruction(machine) -> DecodedInstruction:
    """Fetch, trace, decode and execute the instruction at the current PC."""
    word = machine.memory.read_32(machine.current_state.pc)
    print("Instruction: " + format_binary(word))
    decoded = decode_instruction(word)
    for label, value in (
        ("Decoded", decoded.opcode),
        ("rm", decoded.rm),
        ("shamt", decoded.shamt),
        ("rn", decoded.rn),
        ("rd", decoded.rd),
        ("ALU_immediate", decoded.alu_immediate),
        ("DT_address", decoded.dt_address),
        ("op", decoded.op),
        ("rt", decoded.rt),
        ("BR_address", decoded.br_address),
        ("cond_branch_address", decoded.cond_branch_address),
        ("MOV_inmediate", decoded.mov_immediate),
    ):
        print(f"{label}: {format_binary(value)}")
    print(f"type: {int(decoded.type)}")
    execute(machine, decoded)
    return decoded