"""Allow running the CLI as a module: python -m aihub."""

import sys

from aihub.cli import main

if __name__ == "__main__":
    sys.exit(main())
