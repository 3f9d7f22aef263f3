"""Read-only access to Unix Version 6 disk images, with file checksums."""