"""Allow ``python -m arc_poe``."""

import sys

from arc_poe.cli import main

sys.exit(main())
