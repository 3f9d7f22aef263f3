# archlab

archlab is a set of tools for exploring how computers store data and run
programs:

- **`archlab.v6fs`** reads Unix Version 6 disk images. It handles the
  superblock, inodes with small and large addressing, directories,
  absolute path lookup and SHA-1 checksums of file contents.
- **`archlab.arm`** is an instruction-level simulator for a subset of
  ARMv8: ADD/ADDS, SUB/SUBS, CMP, ANDS, EOR, ORR, MUL, shifts, MOVZ,
  LDUR/LDURB, STUR/STURB/STURH, B, BR, B.cond, CBZ/CBNZ and HLT. It comes
  with an interactive command shell.
- **`archlab.strproc`** holds an ordered list of typed strings and can
  concatenate every entry of a given type.
- **`archlab.pipeshell`** is a prompt that splits each input line into
  `|`-separated commands.

The package has no runtime dependencies. It needs Python 3.10 or later.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line tools

### `v6fs-access`: inspect a V6 disk image

```
v6fs-access [-q] [-i] [-p] diskimagePath
```

- `-q`: do not print the disk size and the superblock summary
- `-i`: print the checksum of every allocated inode
- `-p`: walk the directory tree from `/` and print the checksum of every path

Each line of the inode dump has this form:

```
Inode <n> mode 0x<mode> size <bytes> checksum <sha1-hex>
```

Each line of the path dump has this form:

```
Path <path> <inumber> mode 0x<mode> size <bytes> checksum <sha1-hex>
```

The exit status is 0 on success. It is 1 on a usage error, when the image
cannot be opened, or when the image is not a valid V6 file system (its boot
block magic number is not 0407).

### `arm-sim`: run an ARM program

```
arm-sim program.x [more_programs.x ...]
```

A program file holds whitespace-separated hexadecimal words, usually one
instruction per line. Each file is loaded at `0x00400000`, so a later file
overwrites an earlier one. Once loading is done, the simulator shows an
`ARM-SIM>` prompt. It picks a command by its first letter:

| command                  | effect                                              |
|--------------------------|-----------------------------------------------------|
| `go`                     | run until the program halts (HLT)                   |
| `run n`                  | execute up to `n` instructions                      |
| `mdump low high`         | dump memory words from `low` to `high`              |
| `rdump`                  | dump the instruction count, PC, registers and flags |
| `input reg_no reg_value` | set a register (the value is in hexadecimal)        |
| `?`                      | show help                                           |
| `quit`                   | exit                                                |

Numbers given to `mdump` and `input`'s register number may be decimal,
`0x` hexadecimal or `0`-prefixed octal. Memory and register dumps are also
written to a file named `dumpsim` in the current directory. If the simulator
meets a word that matches no known opcode, it stops with an error message.
End of input ends the session.

### `pipe-shell`: split command pipelines

```
pipe-shell
```

This prints a `Shell> ` prompt. Each line you type is split on `|`, and its
non-empty pieces are listed as `Command <index>: <text>`. A line longer than
255 characters is read in several pieces. More than 200 commands in one line
raises `ValueError`.

## Library use

Reading a disk image:

```python
from archlab.v6fs.diskimg import DiskImage
from archlab.v6fs.filesystem import UnixFileSystem
from archlab.v6fs.chksum import checksum_pathname

with DiskImage("disk.img", True) as disk:
    fs = UnixFileSystem(disk)
    inumber = fs.lookup("/usr/include")
    for entry in fs.dir_entries(inumber, 10000):
        print(entry.inumber, entry.name)
    print(checksum_pathname(fs, "/usr/include").hex())
```

`UnixFileSystem` also provides `iget`, `index_lookup`, `get_block` and
`find_name`. The on-disk structures `Superblock`, `Inode` and `DirEntry` in
`archlab.v6fs.layout` convert to and from bytes. A failed read or a missing
path raises `FileSystemError`. Problems with the image file itself raise
`DiskImageError`, which is a subclass of `OSError`.

Decoding ARM instructions:

```python
from archlab.arm.decoder import decode_instruction, format_binary

decoded = decode_instruction(0xD4400000)  # HLT
print(decoded.type, bin(decoded.opcode))
print(format_binary(0xD4400000))
```

Running a program without the shell:

```python
from archlab.arm.machine import Machine
from archlab.arm.armshell import ArmShell
import io

machine = Machine()
machine.load_words([0xD2800140, 0xD4400000])  # MOVZ X0, #10 ; HLT
shell = ArmShell(machine, io.StringIO())
shell.go()
print(machine.current_state.regs[0])  # 10
```

Typed string lists:

```python
from archlab.strproc import StringProcList

items = StringProcList()
items.add_node(0, "hola")
items.add_node(1, "a")
items.add_node(0, "todos!")
print(items.concat(0, "hash"))   # hashholatodos!
```

## What it does not do

- The V6 reader is read-only. `DiskImage.write_sector` can write raw
  sectors, but nothing creates, changes or deletes files, directories or
  inodes.
- `pipe-shell` only splits and lists commands. It never runs them.
- The ARM simulator covers only the instructions listed above. It has no
  carry or overflow flags, no exceptions and no I/O devices.