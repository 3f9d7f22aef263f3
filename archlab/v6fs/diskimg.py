"""Sector-level access to a disk image file."""

import os

SECTOR_SIZE = 512


class DiskImageError(OSError):
    """Raised when the disk image cannot be opened, read or written."""


class DiskImage:
    """A disk image file read and written one sector at a time."""

    def __init__(self, path, read_only=True):
        self.path = os.fspath(path)
        self.read_only = read_only
        try:
            self._file = open(self.path, "rb" if read_only else "r+b", buffering=0)
        except OSError as exc:
            raise DiskImageError(f"can't open disk image {self.path}: {exc}") from exc

    def _require_open(self):
        if self._file.closed:
            raise DiskImageError(f"disk image {self.path} is closed")
        return self._file

    def _seek_sector(self, sector_num: int):
        if sector_num < 0:
            raise DiskImageError(f"invalid sector number {sector_num}")
        handle = self._require_open()
        try:
            handle.seek(sector_num * SECTOR_SIZE)
        except OSError as exc:
            raise DiskImageError(f"can't seek to sector {sector_num}: {exc}") from exc
        return handle

    def size(self) -> int:
        """Size of the image in bytes."""
        handle = self._require_open()
        try:
            return handle.seek(0, os.SEEK_END)
        except OSError as exc:
            raise DiskImageError(f"can't get size of {self.path}: {exc}") from exc

    def read_sector(self, sector_num: int) -> bytes:
        """Read one sector; fewer bytes come back near the end of the image."""
        handle = self._seek_sector(sector_num)
        try:
            return handle.read(SECTOR_SIZE) or b""
        except OSError as exc:
            raise DiskImageError(f"can't read sector {sector_num}: {exc}") from exc

    def write_sector(self, sector_num: int, data: bytes) -> int:
        """Write one full sector and return the number of bytes written."""
        if len(data) != SECTOR_SIZE:
            raise ValueError(f"a sector is {SECTOR_SIZE} bytes, got {len(data)}")
        handle = self._seek_sector(sector_num)
        try:
            return handle.write(bytes(data))
        except OSError as exc:
            raise DiskImageError(f"can't write sector {sector_num}: {exc}") from exc

    def close(self) -> None:
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False