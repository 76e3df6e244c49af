"""Executable entrypoint for `python -m afsdk`.

Delegates directly to :func:`afsdk.cli.main`.
"""

from afsdk.cli import main

if __name__ == "__main__":
    main()
