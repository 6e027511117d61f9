"""
Main entry point for the pkgcache package.

Allows running the tool as: python -m pkgcache
"""

import sys

from pkgcache.cli import main

if __name__ == "__main__":
    sys.exit(main())
