"""Allow running nodeboot with ``python -m nodeboot``."""

from nodeboot.cli.app import main

if __name__ == "__main__":
    main()
