"""SHA-1 checksums of files stored in a V6 file system."""

import hashlib

from archlab.v6fs.diskimg import SECTOR_SIZE
from archlab.v6fs.filesystem import FileSystemError

CHKSUM_SIZE = 20


def checksum_inumber(fs, inumber: int) -> bytes:
    """Return the 20-byte SHA-1 digest of the contents of inode ``inumber``."""
    inode = fs.iget(inumber)
    if not inode.allocated:
        raise FileSystemError(f"inode {inumber} is not allocated")
    digest = hashlib.sha1(usedforsecurity=False)
    for block_num in range(-(-inode.size // SECTOR_SIZE)):
        digest.update(fs.get_block(inumber, block_num))
    return digest.digest()


def checksum_pathname(fs, pathname: str) -> bytes:
    """Return the SHA-1 digest of the file at an absolute path."""
    return checksum_inumber(fs, fs.lookup(pathname))