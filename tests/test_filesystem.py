import struct

import pytest

from archlab.v6fs.diskimg import SECTOR_SIZE, DiskImage
from archlab.v6fs.filesystem import FileSystemError, UnixFileSystem
from archlab.v6fs.layout import (
    BOOTBLOCK_MAGIC_NUM,
    INODE_START_SECTOR,
    DirEntry,
    Inode,
    InodeMode,
    Superblock,
)

S = SECTOR_SIZE
DIR_MODE = int(InodeMode.IALLOC | InodeMode.IFDIR | 0o755)
FILE_MODE = int(InodeMode.IALLOC | 0o644)
LARGE_FILE_MODE = FILE_MODE | int(InodeMode.ILARG)
HELLO = b"hello world\n"
LONG_NAME = "abcdefghijklmn"
BIG_SIZE = 9 * S + 100
BIG_CONTENT = bytes(i % 251 for i in range(BIG_SIZE))
ROOT_ENTRIES = [(".", 1), ("..", 1), ("hello.txt", 2), ("sub", 3), (LONG_NAME, 2)]
SUB_ENTRIES = [(".", 3), ("..", 1), ("big", 4)]
BIG_SECTORS = list(range(8, 18))


def _inode(mode, size, addr=()):
    addr = tuple(addr) + (0,) * (8 - len(addr))
    return Inode(mode=mode, nlink=1, size0=size >> 16, size1=size & 0xFFFF, addr=addr)


def _dir_block(entries):
    return b"".join(DirEntry(inumber=n, name=name).to_bytes() for name, n in entries)


def build_image(path):
    image = bytearray(S * 24)

    def put(offset, data):
        image[offset : offset + len(data)] = data

    def put_inode(inumber, inode):
        put(INODE_START_SECTOR * S + (inumber - 1) * Inode.SIZE, inode.to_bytes())

    put(0, struct.pack("<H", BOOTBLOCK_MAGIC_NUM))
    put(S, Superblock(isize=2, fsize=24).to_bytes())

    root = _dir_block(ROOT_ENTRIES)
    put(4 * S, root)
    put_inode(1, _inode(DIR_MODE, len(root), [4]))

    put(5 * S, HELLO)
    put_inode(2, _inode(FILE_MODE, len(HELLO), [5]))

    sub = _dir_block(SUB_ENTRIES)
    put(6 * S, sub)
    put_inode(3, _inode(DIR_MODE, len(sub), [6]))

    put(7 * S, struct.pack(f"<{len(BIG_SECTORS)}H", *BIG_SECTORS))
    for sector, start in zip(BIG_SECTORS, range(0, BIG_SIZE, S)):
        put(sector * S, BIG_CONTENT[start : start + S])
    put_inode(4, _inode(LARGE_FILE_MODE, BIG_SIZE, [7]))

    # Tables for a doubly indirect lookup.
    put(18 * S, struct.pack("<H", 19))
    put(19 * S, struct.pack("<4H", 0, 0, 0, 1234))

    path.write_bytes(bytes(image))


@pytest.fixture
def fs(tmp_path):
    path = tmp_path / "disk.img"
    build_image(path)
    with DiskImage(path) as disk:
        yield UnixFileSystem(disk)


def test_superblock_loaded(fs):
    assert fs.superblock.isize == 2
    assert fs.superblock.fsize == 24


def test_bad_magic_raises(tmp_path):
    path = tmp_path / "zero.img"
    path.write_bytes(bytes(2 * S))
    with DiskImage(path) as disk:
        with pytest.raises(FileSystemError):
            UnixFileSystem(disk)


def test_short_image_raises(tmp_path):
    path = tmp_path / "short.img"
    path.write_bytes(struct.pack("<H", BOOTBLOCK_MAGIC_NUM))
    with DiskImage(path) as disk:
        with pytest.raises(FileSystemError):
            UnixFileSystem(disk)


def test_iget(fs):
    root = fs.iget(1)
    assert root.is_directory
    assert root.size == len(_dir_block(ROOT_ENTRIES))
    assert fs.iget(2).size == len(HELLO)
    assert not fs.iget(32).allocated


@pytest.mark.parametrize("inumber", [0, -1, 33])
def test_iget_out_of_range(fs, inumber):
    with pytest.raises(FileSystemError):
        fs.iget(inumber)


def test_index_lookup_small(fs):
    assert fs.index_lookup(fs.iget(2), 0) == 5
    with pytest.raises(FileSystemError):
        fs.index_lookup(fs.iget(2), 8)
    with pytest.raises(FileSystemError):
        fs.index_lookup(fs.iget(2), -1)


def test_index_lookup_indirect(fs):
    big = fs.iget(4)
    assert [fs.index_lookup(big, n) for n in range(len(BIG_SECTORS))] == BIG_SECTORS


def test_index_lookup_doubly_indirect(fs):
    inode = _inode(LARGE_FILE_MODE, 0, [0] * 7 + [18])
    assert fs.index_lookup(inode, 7 * 256 + 3) == 1234


def test_index_lookup_beyond_largest_file(fs):
    inode = _inode(LARGE_FILE_MODE, 0, [0] * 7 + [18])
    with pytest.raises(FileSystemError):
        fs.index_lookup(inode, 7 * 256 + 256 * 256)


def test_get_block_small_file(fs):
    assert fs.get_block(2, 0) == HELLO
    assert fs.get_block(2, 1) == b""


def test_get_block_large_file(fs):
    blocks = [fs.get_block(4, n) for n in range(len(BIG_SECTORS))]
    assert b"".join(blocks) == BIG_CONTENT
    assert all(len(block) == S for block in blocks[:-1])


def test_get_block_invalid(fs):
    with pytest.raises(FileSystemError):
        fs.get_block(2, -1)
    with pytest.raises(FileSystemError):
        fs.get_block(0, 0)


def test_find_name(fs):
    assert fs.find_name("hello.txt", 1) == DirEntry(inumber=2, name="hello.txt")
    assert fs.find_name("big", 3).inumber == 4


def test_find_name_missing(fs):
    with pytest.raises(FileSystemError):
        fs.find_name("nothing", 1)


def test_find_name_in_regular_file_raises(fs):
    with pytest.raises(FileSystemError):
        fs.find_name("x", 2)


def test_find_name_compares_fourteen_bytes(fs):
    assert fs.find_name(LONG_NAME + "XYZ", 1).inumber == 2


@pytest.mark.parametrize(
    "pathname, expected",
    [("/", 1), ("/hello.txt", 2), ("/sub", 3), ("/sub/big", 4), ("//sub//big/", 4)],
)
def test_lookup(fs, pathname, expected):
    assert fs.lookup(pathname) == expected


@pytest.mark.parametrize("pathname", ["hello.txt", "", "/missing", "/hello.txt/x"])
def test_lookup_errors(fs, pathname):
    with pytest.raises(FileSystemError):
        fs.lookup(pathname)


def test_dir_entries(fs):
    entries = fs.dir_entries(1)
    assert [(e.name, e.inumber) for e in entries] == ROOT_ENTRIES


def test_dir_entries_limit(fs):
    entries = fs.dir_entries(1, 2)
    assert [(e.name, e.inumber) for e in entries] == ROOT_ENTRIES[:2]


def test_dir_entries_errors(fs):
    with pytest.raises(FileSystemError):
        fs.dir_entries(1, 0)
    with pytest.raises(FileSystemError):
        fs.dir_entries(2)
    with pytest.raises(FileSystemError):
        fs.dir_entries(5)