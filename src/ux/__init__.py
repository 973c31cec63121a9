"""ux - simple monorepo task runner."""

__version__ = "0.3.0"
