"""Interactive command shell driving the ARM instruction-level simulator."""

import re
import sys

from archlab.arm.decoder import DecodeError
from archlab.arm.executor import process_instruction
from archlab.arm.machine import ARM_REGS, Machine, ProgramLoadError

PROMPT = "ARM-SIM> "
DUMP_FILE_NAME = "dumpsim"

_M32 = 0xFFFFFFFF
_M64 = 0xFFFFFFFFFFFFFFFF
_C_INT = re.compile(r"([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")

_HELP_TEXT = (
    "----------------ARM ISIM Help-----------------------\n"
    "go               -  run program to completion         \n"
    "run n            -  execute program for n instructions\n"
    "mdump low high   -  dump memory from low to high      \n"
    "rdump            -  dump the register & bus values    \n"
    "input reg_no reg_value - set GPR reg_no to reg_value  \n"
    "?                -  display this help menu            \n"
    "quit             -  exit the program                  \n\n"
)


def _s32(value: int) -> int:
    value &= _M32
    return value - (1 << 32) if value >> 31 else value


def _s64(value: int) -> int:
    value &= _M64
    return value - (1 << 64) if value >> 63 else value


def _parse_c_int(text: str) -> int:
    """Parse an integer with C's automatic base: 0x hex, leading 0 octal, else decimal."""
    match = _C_INT.fullmatch(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    sign, body = match.groups()
    if body[:2].lower() == "0x":
        value = int(body[2:], 16)
    elif body.startswith("0"):
        value = int(body, 8)
    else:
        value = int(body, 10)
    return -value if sign == "-" else value


class ArmShell:
    """Runs simulator commands against a machine, echoing dumps to a dump file."""

    def __init__(self, machine, dump_file, out=None):
        self.machine = machine
        self.dump_file = dump_file
        self.out = sys.stdout if out is None else out

    def _write_both(self, text: str) -> None:
        self.out.write(text)
        self.dump_file.write(text)

    def cycle(self) -> None:
        """Execute one instruction and latch the next state."""
        machine = self.machine
        process_instruction(machine)
        machine.current_state = machine.next_state.copy()
        machine.instruction_count += 1

    def run(self, num_cycles: int) -> None:
        """Simulate up to ``num_cycles`` instructions."""
        if not self.machine.run_bit:
            self.out.write("Can't simulate, Simulator is halted\n\n")
            return
        self.out.write(f"Simulating for {num_cycles} cycles...\n\n")
        for _ in range(num_cycles):
            if not self.machine.run_bit:
                self.out.write("Simulator halted\n\n")
                break
            self.cycle()

    def go(self) -> None:
        """Simulate until the program halts."""
        if not self.machine.run_bit:
            self.out.write("Can't simulate, Simulator is halted\n\n")
            return
        self.out.write("Simulating...\n\n")
        while self.machine.run_bit:
            self.cycle()
        self.out.write("Simulator halted\n\n")

    def mdump(self, start: int, stop: int) -> None:
        """Dump the words from ``start`` to ``stop`` inclusive."""
        lines = [
            f"\nMemory content [0x{start & _M32:08x}..0x{stop & _M32:08x}] :\n",
            "-------------------------------------\n",
        ]
        read = self.machine.memory.read_32
        for address in range(start, stop + 1, 4):
            lines.append(f"  0x{address & _M32:08x} ({address}) : 0x{read(address):x}\n")
        lines.append("\n")
        text = "".join(lines)
        self._write_both(text)

    def rdump(self) -> None:
        """Dump the instruction count, PC, registers and flags."""
        state = self.machine.current_state
        lines = [
            "\nCurrent register/bus values :\n",
            "-------------------------------------\n",
            f"Instruction Count : {self.machine.instruction_count & _M32}\n",
            f"PC                : 0x{state.pc & _M64:x}\n",
            "Registers:\n",
        ]
        lines.extend(f"X{k}: 0x{reg & _M64:x}\n" for k, reg in enumerate(state.regs))
        lines.append(f"FLAG_N: {state.flag_n}\n")
        lines.append(f"FLAG_Z: {state.flag_z}\n")
        lines.append("\n")
        self._write_both("".join(lines))

    def help(self) -> None:
        self.out.write(_HELP_TEXT)

    def _simulate(self, action) -> None:
        try:
            action()
        except DecodeError as exc:
            self.machine.run_bit = False
            self.out.write(f"Error: {exc}\n")

    def handle_command(self, tokens) -> bool:
        """Carry out one command; return False when the shell should quit."""
        tokens = list(tokens)
        if not tokens:
            return True
        command, args = tokens[0], tokens[1:]
        first = command[0].lower()

        if first == "g":
            self._simulate(self.go)
        elif first == "m":
            try:
                start, stop = (_s32(_parse_c_int(arg)) for arg in args[:2])
            except ValueError:
                return True
            self.mdump(start, stop)
        elif first == "?":
            self.help()
        elif first == "q":
            self.out.write("Bye.\n")
            return False
        elif first == "r":
            if command[1:2].lower() == "d":
                self.rdump()
            else:
                try:
                    cycles = int(args[0], 10)
                except (IndexError, ValueError):
                    return True
                self._simulate(lambda: self.run(cycles))
        elif first == "i":
            try:
                register_no = _parse_c_int(args[0])
                register_value = _s64(int(args[1], 16))
            except (IndexError, ValueError):
                return True
            if not 0 <= register_no < ARM_REGS:
                self.out.write(f"Invalid register {register_no}\n")
                return True
            self.machine.current_state.regs[register_no] = register_value
            self.machine.next_state.regs[register_no] = register_value
        else:
            self.out.write("Invalid Command\n")
        return True


def main(argv=None):
    """Load program files and run the interactive simulator shell."""
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout
    if not args:
        out.write("Error: usage: sim <program_file_1> <program_file_2> ...\n")
        return 1

    out.write("ARM Simulator\n\n")
    machine = Machine()
    for path in args:
        try:
            words = machine.load_program(path)
        except ProgramLoadError as exc:
            out.write(f"Error: {exc}\n")
            return 255
        out.write(f"Read {words} words from program into memory.\n\n")

    try:
        dump_file = open(DUMP_FILE_NAME, "w")
    except OSError:
        out.write("Error: Can't open dumpsim file\n")
        return 255

    with dump_file:
        shell = ArmShell(machine, dump_file, out)
        while True:
            out.write(PROMPT)
            out.flush()
            line = sys.stdin.readline()
            if not line:
                return 0
            tokens = line.split()
            if not tokens:
                continue
            out.write("\n")
            if not shell.handle_command(tokens):
                return 0


if __name__ == "__main__":
    sys.exit(main())