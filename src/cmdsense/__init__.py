"""cmdsense - terminal command intelligence."""

__version__ = "0.1.0"
