"""`python -m carrier` entrypoint."""

from __future__ import annotations

from carrier.cli import main

if __name__ == "__main__":
    main()
