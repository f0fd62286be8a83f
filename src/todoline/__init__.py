"""todoline - browse and act on remote tasks from the terminal."""

__version__ = "0.1.0"
