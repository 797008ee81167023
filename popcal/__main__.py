"""
Package entry point.

Allows running the application via:

    python -m popcal

This simply forwards execution to popcal.cli.main().
"""

from popcal.cli import main

if __name__ == "__main__":
    main()
