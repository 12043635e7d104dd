"""ezbackup: ezbackup/__init__.py."""

__version__ = "0.20.0"
