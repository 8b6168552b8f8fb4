#!/usr/bin/env python3
"""
S3 Multipart Upload Debugger

Run this script to step through a multipart upload by hand.

Usage:
    python run.py --endpoint localhost:9000 multipart new mybucket big.bin
    python run.py multipart upload mybucket big.bin <uploadID> 1 part1.bin
    python run.py multipart complete mybucket big.bin <uploadID> 1.<etag> 2.<etag>
    python run.py multipart listuploads mybucket --prefix big
    python run.py multipart listparts mybucket big.bin <uploadID> --maxparts 10
    python run.py multipart abort mybucket big.bin <uploadID>

Credentials come from --accesskey/--secretkey or ACCESS_KEY/SECRET_KEY.
"""

import sys
from mpdebug.cli import main

if __name__ == "__main__":
    sys.exit(main())
