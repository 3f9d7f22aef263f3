"""Inspect a V6 disk image: superblock summary, inode and pathname checksums."""

import getopt
import sys

from archlab.v6fs.chksum import checksum_inumber, checksum_pathname
from archlab.v6fs.diskimg import DiskImage, DiskImageError
from archlab.v6fs.filesystem import (
    DEFAULT_MAX_ENTRIES,
    INODES_PER_SECTOR,
    MAX_PATH,
    FileSystemError,
    UnixFileSystem,
)
from archlab.v6fs.layout import ROOT_INUMBER

PROG_NAME = "diskimageaccess"


def _streams(out, err):
    return (sys.stdout if out is None else out, sys.stderr if err is None else err)


def dump_inode_checksums(fs, out=None, err=None):
    """Write the checksum of every allocated inode, one line per inode."""
    out, err = _streams(out, err)
    for inumber in range(1, fs.superblock.isize * INODES_PER_SECTOR):
        try:
            inode = fs.iget(inumber)
        except FileSystemError:
            err.write(f"Can't read inode {inumber} \n")
            return
        if not inode.allocated:
            continue
        try:
            chksum = checksum_inumber(fs, inumber)
        except FileSystemError:
            err.write(f"Inode {inumber} can't compute chksum\n")
            continue
        out.write(
            f"Inode {inumber} mode 0x{inode.mode:x} size {inode.size} "
            f"checksum {chksum.hex()}\n"
        )


def _dump_path_and_children(fs, pathname, inumber, out, err):
    try:
        inode = fs.iget(inumber)
    except FileSystemError:
        err.write(f"Can't read inode {inumber} \n")
        return
    if not inode.allocated:
        raise FileSystemError(f"path {pathname} names unallocated inode {inumber}")

    try:
        by_inumber = checksum_inumber(fs, inumber)
        by_path = checksum_pathname(fs, pathname)
    except FileSystemError:
        err.write(f"Can't checksum inode {inumber} path {pathname}\n")
        return

    if by_inumber != by_path:
        err.write(f"Pathname checksum of {pathname} differs from inode {inumber}\n")
        return

    out.write(
        f"Path {pathname} {inumber} mode 0x{inode.mode:x} size {inode.size} "
        f"checksum {by_path.hex()}\n"
    )

    if not inode.is_directory:
        return

    prefix = "" if pathname == "/" else pathname
    if len(prefix) > MAX_PATH - 16:
        err.write(f"Too deep of directories {prefix}\n")

    try:
        entries = fs.dir_entries(inumber, DEFAULT_MAX_ENTRIES)
    except FileSystemError:
        entries = []
    for entry in entries:
        if entry.name in (".", ".."):
            continue
        _dump_path_and_children(fs, f"{prefix}/{entry.name}", entry.inumber, out, err)


def dump_pathname_checksums(fs, out=None, err=None):
    """Walk the tree from the root, writing the checksum of every path."""
    out, err = _streams(out, err)
    _dump_path_and_children(fs, "/", ROOT_INUMBER, out, err)


def print_directory(fs, pathname, out=None, err=None):
    """Write every entry of the directory at ``pathname``."""
    out, err = _streams(out, err)
    try:
        inumber = fs.lookup(pathname)
    except FileSystemError:
        err.write(f"Can't find {pathname}\n")
        return
    try:
        entries = fs.dir_entries(inumber, DEFAULT_MAX_ENTRIES)
    except FileSystemError:
        err.write(f"Can't read entries from {pathname}\n")
        return
    for entry in entries:
        out.write(f"Direntry {pathname} Name {entry.name} Inumber {entry.inumber}\n")


def _usage(err):
    err.write(f"Usage: {PROG_NAME} <options> diskimagePath\n")
    err.write("where <options> can be:\n")
    err.write("-q     don't print extra info\n")
    err.write("-i     print all inode checksums\n")
    err.write("-p     print all pathname checksums\n")
    return 1


def main(argv=None):
    """Run the command; return the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    out, err = sys.stdout, sys.stderr

    try:
        opts, rest = getopt.gnu_getopt(args, "iqp")
    except getopt.GetoptError:
        return _usage(err)
    flags = {flag for flag, _ in opts}
    if len(rest) != 1:
        return _usage(err)

    diskpath = rest[0]
    try:
        disk = DiskImage(diskpath, read_only=True)
    except DiskImageError:
        err.write(f"Can't open diskimagePath {diskpath}\n")
        return 1

    try:
        try:
            fs = UnixFileSystem(disk)
        except FileSystemError as exc:
            err.write(f"{exc}\n")
            err.write("Failed to initialize unix filesystem\n")
            return 1

        if "-q" not in flags:
            try:
                disksize = disk.size()
            except DiskImageError:
                err.write(f"Error getting the size of {diskpath}\n")
                return 1
            sb = fs.superblock
            out.write(f"Disk {diskpath} is {disksize} bytes ({disksize // 1024} KB)\n")
            out.write(f"Superblock s_isize {sb.isize}\n")
            out.write(f"Superblock s_fsize {sb.fsize}\n")
            out.write(f"Superblock s_nfree {sb.nfree}\n")
            out.write(f"Superblock s_ninode {sb.ninode}\n")

        try:
            if "-i" in flags:
                dump_inode_checksums(fs, out, err)
            if "-p" in flags:
                dump_pathname_checksums(fs, out, err)
        except FileSystemError as exc:
            err.write(f"{exc}\n")
            return 1
    finally:
        try:
            disk.close()
        except OSError:
            err.write(f"Error closing {diskpath}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())