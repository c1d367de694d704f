"""Main entry point for ``python -m unilib``."""

from unilib.cli import main

if __name__ == "__main__":
    main()
