"""On-disk structures of the Version 6 Unix file system.

Disk layout:
  sector 0              boot block; its first 16-bit word is 0407
  sector 1              superblock
  sector 2 ...          inode table, ``Superblock.isize`` sectors long
  sector 2 + isize ...  data blocks
"""

import enum
import struct
from dataclasses import dataclass
from typing import ClassVar

BOOTBLOCK_SECTOR = 0
SUPERBLOCK_SECTOR = 1
INODE_START_SECTOR = 2
ROOT_INUMBER = 1
BOOTBLOCK_MAGIC_NUM = 0o407

DIRENT_NAME_LEN = 14
NAME_ENCODING = "utf-8"

_SUPERBLOCK = struct.Struct("<3H100HH100H4B2H48H")
_INODE = struct.Struct("<H4BH8H2H2H")
_DIRENT = struct.Struct(f"<H{DIRENT_NAME_LEN}s")


class InodeMode(enum.IntFlag):
    """Bits of the ``mode`` field of an inode."""

    IALLOC = 0o100000  # inode is in use
    IFMT = 0o60000  # mask for the file type
    IFDIR = 0o40000  # directory
    IFCHR = 0o20000  # character special
    IFBLK = 0o60000  # block special; a type of 0 is a regular file
    ILARG = 0o10000  # large addressing algorithm
    ISUID = 0o4000
    ISGID = 0o2000
    ISVTX = 0o1000
    IREAD = 0o400
    IWRITE = 0o200
    IEXEC = 0o100


def _check_length(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise ValueError(f"{what} needs {size} bytes, got {len(data)}")


@dataclass(frozen=True)
class Superblock:
    """The superblock: one 512-byte sector describing the volume."""

    isize: int = 0
    fsize: int = 0
    nfree: int = 0
    free: tuple[int, ...] = (0,) * 100
    ninode: int = 0
    inode: tuple[int, ...] = (0,) * 100
    flock: int = 0
    ilock: int = 0
    fmod: int = 0
    ronly: int = 0
    time: tuple[int, ...] = (0, 0)
    pad: tuple[int, ...] = (0,) * 48

    SIZE: ClassVar[int] = _SUPERBLOCK.size

    def __post_init__(self) -> None:
        for name, length in (("free", 100), ("inode", 100), ("time", 2), ("pad", 48)):
            if len(getattr(self, name)) != length:
                raise ValueError(f"superblock field {name} must hold {length} values")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Superblock":
        _check_length(data, cls.SIZE, "superblock")
        v = _SUPERBLOCK.unpack_from(data)
        return cls(
            isize=v[0],
            fsize=v[1],
            nfree=v[2],
            free=tuple(v[3:103]),
            ninode=v[103],
            inode=tuple(v[104:204]),
            flock=v[204],
            ilock=v[205],
            fmod=v[206],
            ronly=v[207],
            time=tuple(v[208:210]),
            pad=tuple(v[210:258]),
        )

    def to_bytes(self) -> bytes:
        return _SUPERBLOCK.pack(
            self.isize,
            self.fsize,
            self.nfree,
            *self.free,
            self.ninode,
            *self.inode,
            self.flock,
            self.ilock,
            self.fmod,
            self.ronly,
            *self.time,
            *self.pad,
        )


@dataclass(frozen=True)
class Inode:
    """A 32-byte on-disk inode."""

    mode: int = 0
    nlink: int = 0
    uid: int = 0
    gid: int = 0
    size0: int = 0
    size1: int = 0
    addr: tuple[int, ...] = (0,) * 8
    atime: tuple[int, ...] = (0, 0)
    mtime: tuple[int, ...] = (0, 0)

    SIZE: ClassVar[int] = _INODE.size

    def __post_init__(self) -> None:
        for name, length in (("addr", 8), ("atime", 2), ("mtime", 2)):
            if len(getattr(self, name)) != length:
                raise ValueError(f"inode field {name} must hold {length} values")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Inode":
        _check_length(data, cls.SIZE, "inode")
        v = _INODE.unpack_from(data)
        return cls(
            mode=v[0],
            nlink=v[1],
            uid=v[2],
            gid=v[3],
            size0=v[4],
            size1=v[5],
            addr=tuple(v[6:14]),
            atime=tuple(v[14:16]),
            mtime=tuple(v[16:18]),
        )

    def to_bytes(self) -> bytes:
        return _INODE.pack(
            self.mode,
            self.nlink,
            self.uid,
            self.gid,
            self.size0,
            self.size1,
            *self.addr,
            *self.atime,
            *self.mtime,
        )

    @property
    def size(self) -> int:
        """File size in bytes, stored as a three-byte number."""
        return (self.size0 << 16) | self.size1

    @property
    def allocated(self) -> bool:
        return bool(self.mode & InodeMode.IALLOC)

    @property
    def is_directory(self) -> bool:
        return (self.mode & InodeMode.IFMT) == InodeMode.IFDIR

    @property
    def is_large(self) -> bool:
        return bool(self.mode & InodeMode.ILARG)


@dataclass(frozen=True)
class DirEntry:
    """A 16-byte directory entry: inode number and a name of up to 14 bytes."""

    inumber: int
    name: str

    SIZE: ClassVar[int] = _DIRENT.size

    @property
    def raw_name(self) -> bytes:
        return self.name.encode(NAME_ENCODING, "surrogateescape")

    @classmethod
    def from_bytes(cls, data: bytes) -> "DirEntry":
        _check_length(data, cls.SIZE, "directory entry")
        inumber, raw = _DIRENT.unpack_from(data)
        name = raw.split(b"\0", 1)[0].decode(NAME_ENCODING, "surrogateescape")
        return cls(inumber=inumber, name=name)

    def to_bytes(self) -> bytes:
        raw = self.raw_name
        if len(raw) > DIRENT_NAME_LEN:
            raise ValueError(f"name {self.name!r} is longer than {DIRENT_NAME_LEN} bytes")
        return _DIRENT.pack(self.inumber, raw)