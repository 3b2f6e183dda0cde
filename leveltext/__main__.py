"""Module entrypoint for running Leveltext as ``python -m leveltext``."""

from __future__ import annotations

from leveltext.cli import main


if __name__ == "__main__":
    main()
