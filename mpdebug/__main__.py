import sys

from mpdebug.cli import main

sys.exit(main())
