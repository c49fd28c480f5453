#!/usr/bin/env python3
"""Entry point for running parley as a script (``python main.py chat --mock``)."""

from parley.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
