"""Memory and register state of the ARM instruction-level simulator."""

import re
from dataclasses import dataclass, field
from pathlib import Path

ARM_REGS = 32

MEM_DATA_START = 0x10000000
MEM_DATA_SIZE = 0x00100000
MEM_TEXT_START = 0x00400000
MEM_TEXT_SIZE = 0x00100000
MEM_STACK_START = 0xFFFFFFFC
MEM_STACK_SIZE = 0x00100000

_WORD_MASK = 0xFFFFFFFF
_ADDRESS_MASK = 0xFFFFFFFFFFFFFFFF
_HEX_WORD_PATTERN = re.compile(r"[+-]?(0[xX])?[0-9a-fA-F]+")


class ProgramLoadError(Exception):
    """Raised when a program file cannot be opened or parsed."""


@dataclass
class _Region:
    start: int
    size: int
    data: bytearray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Three spare bytes so that an unaligned word at the end stays in bounds.
        self.data = bytearray(self.size + 3)

    def offset_of(self, address: int):
        if self.start <= address < self.start + self.size:
            return address - self.start
        return None


class Memory:
    """Text, data and stack regions addressed as little-endian 32-bit words."""

    def __init__(self) -> None:
        self._regions = [
            _Region(MEM_TEXT_START, MEM_TEXT_SIZE),
            _Region(MEM_DATA_START, MEM_DATA_SIZE),
            _Region(MEM_STACK_START, MEM_STACK_SIZE),
        ]

    def _locate(self, address: int):
        address &= _ADDRESS_MASK
        for region in self._regions:
            offset = region.offset_of(address)
            if offset is not None:
                return region, offset
        return None, 0

    def read_32(self, address: int) -> int:
        """Read the word at ``address``; unmapped addresses read as 0."""
        region, offset = self._locate(address)
        if region is None:
            return 0
        return int.from_bytes(region.data[offset : offset + 4], "little")

    def write_32(self, address: int, value: int) -> None:
        """Write a word at ``address``; writes to unmapped addresses are dropped."""
        region, offset = self._locate(address)
        if region is None:
            return
        region.data[offset : offset + 4] = (value & _WORD_MASK).to_bytes(4, "little")


@dataclass
class CpuState:
    """Program counter, register file and the N and Z flags."""

    pc: int = 0
    regs: list = field(default_factory=lambda: [0] * ARM_REGS)
    flag_n: int = 0
    flag_z: int = 0

    def copy(self) -> "CpuState":
        return CpuState(pc=self.pc, regs=list(self.regs), flag_n=self.flag_n, flag_z=self.flag_z)


class Machine:
    """A simulated machine: memory, current and next CPU state, run bit."""

    def __init__(self) -> None:
        self.memory = Memory()
        self.current_state = CpuState()
        self.next_state = CpuState()
        self.run_bit = True
        self.instruction_count = 0

    def load_words(self, words) -> int:
        """Place words at the start of the text region and point the PC there.

        Returns the number of words loaded.
        """
        count = 0
        for count, word in enumerate(words, start=1):
            self.memory.write_32(MEM_TEXT_START + 4 * (count - 1), word)
        self.current_state.pc = MEM_TEXT_START
        self.next_state = self.current_state.copy()
        self.run_bit = True
        return count

    def load_program(self, path) -> int:
        """Load a file of whitespace-separated hexadecimal words.

        Reading stops quietly at the end of the file; a word that is not a
        hexadecimal number raises :class:`ProgramLoadError`.
        """
        try:
            text = Path(path).read_text()
        except OSError as exc:
            raise ProgramLoadError(f"Can't open program file {path}") from exc
        words = []
        for item in text.split():
            if not _HEX_WORD_PATTERN.fullmatch(item):
                raise ProgramLoadError(f"Malformed program file {path}")
            words.append(int(item, 16) & _WORD_MASK)
        return self.load_words(words)