"""A minimal shell prompt that splits each input line into piped commands."""

import sys

MAX_COMMANDS = 200
MAX_LINE = 255
PROMPT = "Shell> "


def split_commands(line: str) -> list:
    """Cut ``line`` at its first newline and split it on '|', dropping empty pieces."""
    line = line.split("\n", 1)[0]
    commands = [piece for piece in line.split("|") if piece]
    if len(commands) > MAX_COMMANDS:
        raise ValueError(f"more than {MAX_COMMANDS} commands in one line")
    return commands


def run_shell(stdin, stdout) -> None:
    """Prompt, read lines of at most 255 characters and list their commands."""
    while True:
        stdout.write(PROMPT)
        stdout.flush()
        line = stdin.readline(MAX_LINE)
        if not line:
            return
        for index, command in enumerate(split_commands(line)):
            stdout.write(f"Command {index}: {command}\n")


def main(argv=None):
    run_shell(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())