"""Entry point for running the installer with ``python -m oac_context``."""

from .cli import main

if __name__ == "__main__":
    main()
