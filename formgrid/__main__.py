"""Allow ``python -m formgrid``."""

import sys

from .cli import main


sys.exit(main())
