"""docsync - keep numbered documents in a GitHub repository in sync."""

__version__ = "0.1.0"
