"""Allow `python -m socialkit`."""

import sys

from .main import main

sys.exit(main())
