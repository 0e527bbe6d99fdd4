"""Allow running the bucketfs CLI with ``python -m bucketfs``."""

import sys

from bucketfs.cli import main

sys.exit(main())
