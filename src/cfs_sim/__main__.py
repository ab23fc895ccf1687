"""Allow ``python -m cfs_sim``."""

import sys

from cfs_sim.cli import main

sys.exit(main())
