"""``python -m warble`` — same as ``warble run``."""

import sys

from warble.cli import main

main(sys.argv[1:] or ["run"])
