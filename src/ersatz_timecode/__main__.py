"""Allow ``python -m ersatz_timecode``."""

import sys

from .main import main

sys.exit(main())
