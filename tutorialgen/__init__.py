"""Generate tutorial documents from templates whose code blocks are run in Docker builds, with checksum-verifying artifact helpers."""

__version__ = "0.1.0"