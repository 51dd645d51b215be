"""tachosync - Tachograph file discovery, upload and archiving agent."""

__version__ = "0.1.0"
