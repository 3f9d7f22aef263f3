"""V6 disk image reader, ARM simulator, typed string list and pipe-splitting prompt."""

__version__ = "0.1.0"