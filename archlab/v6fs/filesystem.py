"""Reading inodes, file blocks, directories and paths of a V6 file system."""

import itertools
import struct
from collections.abc import Iterator

from archlab.v6fs.diskimg import SECTOR_SIZE, DiskImageError
from archlab.v6fs.layout import (
    BOOTBLOCK_MAGIC_NUM,
    BOOTBLOCK_SECTOR,
    DIRENT_NAME_LEN,
    INODE_START_SECTOR,
    NAME_ENCODING,
    ROOT_INUMBER,
    SUPERBLOCK_SECTOR,
    DirEntry,
    Inode,
    Superblock,
)

INODES_PER_SECTOR = SECTOR_SIZE // Inode.SIZE
DIRENTS_PER_SECTOR = SECTOR_SIZE // DirEntry.SIZE
POINTERS_PER_SECTOR = SECTOR_SIZE // 2
SINGLY_INDIRECT_SLOTS = 7
MAX_PATH = 1024
DEFAULT_MAX_ENTRIES = 10000

_POINTERS = struct.Struct(f"<{POINTERS_PER_SECTOR}H")


class FileSystemError(Exception):
    """Raised when the file system cannot satisfy a request."""


class UnixFileSystem:
    """A V6 file system on an open disk image."""

    def __init__(self, disk):
        self.disk = disk
        boot = self._read_sector(BOOTBLOCK_SECTOR)
        if len(boot) != SECTOR_SIZE:
            raise FileSystemError("error reading bootblock")
        (magic,) = struct.unpack_from("<H", boot)
        if magic != BOOTBLOCK_MAGIC_NUM:
            raise FileSystemError(f"bad magic number on disk (0x{magic:x})")
        super_data = self._read_sector(SUPERBLOCK_SECTOR)
        if len(super_data) != SECTOR_SIZE:
            raise FileSystemError("error reading superblock")
        self.superblock = Superblock.from_bytes(super_data)

    def _read_sector(self, sector_num: int) -> bytes:
        try:
            return self.disk.read_sector(sector_num)
        except DiskImageError as exc:
            raise FileSystemError(f"can't read sector {sector_num}: {exc}") from exc

    def _read_pointers(self, sector_num: int) -> tuple[int, ...]:
        data = self._read_sector(sector_num)
        if len(data) < SECTOR_SIZE:
            raise FileSystemError(f"short read of indirect block {sector_num}")
        return _POINTERS.unpack_from(data)

    def iget(self, inumber: int) -> Inode:
        """Fetch inode ``inumber`` (numbered from 1)."""
        max_inumber = self.superblock.isize * INODES_PER_SECTOR
        if not 1 <= inumber <= max_inumber:
            raise FileSystemError(f"inode number {inumber} out of range 1..{max_inumber}")
        sector, slot = divmod(inumber - 1, INODES_PER_SECTOR)
        data = self._read_sector(INODE_START_SECTOR + sector)
        start = slot * Inode.SIZE
        if len(data) < start + Inode.SIZE:
            raise FileSystemError(f"can't read inode {inumber}")
        return Inode.from_bytes(data[start : start + Inode.SIZE])

    def index_lookup(self, inode: Inode, block_num: int) -> int:
        """Map a file block index to the disk sector holding it."""
        if block_num < 0:
            raise FileSystemError(f"invalid block number {block_num}")
        if not inode.is_large:
            if block_num < len(inode.addr):
                return inode.addr[block_num]
            raise FileSystemError(f"block {block_num} beyond a small file")

        indirect_limit = SINGLY_INDIRECT_SLOTS * POINTERS_PER_SECTOR
        if block_num < indirect_limit:
            slot, offset = divmod(block_num, POINTERS_PER_SECTOR)
            return self._read_pointers(inode.addr[slot])[offset]

        first, second = divmod(block_num - indirect_limit, POINTERS_PER_SECTOR)
        if first >= POINTERS_PER_SECTOR:
            raise FileSystemError(f"block {block_num} beyond the largest file")
        indirect = self._read_pointers(inode.addr[SINGLY_INDIRECT_SLOTS])
        return self._read_pointers(indirect[first])[second]

    def get_block(self, inumber: int, block_num: int) -> bytes:
        """Return the valid bytes of block ``block_num`` of a file."""
        if inumber < 1 or block_num < 0:
            raise FileSystemError(f"invalid block {block_num} of inode {inumber}")
        inode = self.iget(inumber)
        data = self._read_sector(self.index_lookup(inode, block_num))
        offset = block_num * SECTOR_SIZE
        if inode.size <= offset:
            return b""
        return data[: min(inode.size - offset, SECTOR_SIZE)]

    def _iter_entries(self, inumber: int, inode: Inode) -> Iterator[DirEntry]:
        total = inode.size // DirEntry.SIZE
        for block_num in range(-(-total // DIRENTS_PER_SECTOR)):
            data = self.get_block(inumber, block_num)
            usable = len(data) - len(data) % DirEntry.SIZE
            for start in range(0, usable, DirEntry.SIZE):
                yield DirEntry.from_bytes(data[start : start + DirEntry.SIZE])

    def find_name(self, name: str, dir_inumber: int) -> DirEntry:
        """Find ``name`` in a directory; only its first 14 bytes are compared."""
        if dir_inumber < 1:
            raise FileSystemError(f"invalid directory inode {dir_inumber}")
        inode = self.iget(dir_inumber)
        if not inode.is_directory:
            raise FileSystemError(f"inode {dir_inumber} is not a directory")
        wanted = name.encode(NAME_ENCODING, "surrogateescape")[:DIRENT_NAME_LEN]
        wanted = wanted.split(b"\0", 1)[0]
        for entry in self._iter_entries(dir_inumber, inode):
            if entry.raw_name == wanted:
                return entry
        raise FileSystemError(f"{name!r} not found in directory inode {dir_inumber}")

    def lookup(self, pathname: str) -> int:
        """Return the inode number of an absolute path."""
        if not pathname.startswith("/"):
            raise FileSystemError(f"not an absolute path: {pathname!r}")
        current = ROOT_INUMBER
        for component in pathname[: MAX_PATH - 1].split("/"):
            if component:
                current = self.find_name(component, current).inumber
        return current

    def dir_entries(self, inumber: int, max_entries: int = DEFAULT_MAX_ENTRIES) -> list[DirEntry]:
        """Return up to ``max_entries`` entries of a directory, in disk order."""
        inode = self.iget(inumber)
        if not inode.allocated or not inode.is_directory:
            raise FileSystemError(f"inode {inumber} is not an allocated directory")
        if max_entries < 1:
            raise FileSystemError("max_entries must be at least 1")
        if inode.size % DirEntry.SIZE:
            raise FileSystemError(f"directory inode {inumber} has a partial entry")
        return list(itertools.islice(self._iter_entries(inumber, inode), max_entries))