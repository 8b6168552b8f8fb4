"""
S3 Multipart Upload Debugger.

Drives each step of an S3 multipart upload (initiate, upload part,
complete, list, abort) by hand against any S3-compatible service and
prints the raw result.
"""

__version__ = "1.0.0"

from mpdebug.cli import main

__all__ = ["main", "__version__"]
