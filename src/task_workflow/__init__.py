"""Task workflow engine with typed per-status requirements."""

__version__ = "0.1.0"
