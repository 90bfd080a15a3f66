"""mastercleaner - find and report references into missing masters."""

__version__ = "0.1.0"
