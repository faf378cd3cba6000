"""Allow ``python -m feedback360.cli`` execution."""

import sys

from feedback360.cli.analyze import main

sys.exit(main())
