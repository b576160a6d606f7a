"""Entry point script for the line length judgment task.

This small wrapper simply dispatches to :mod:`linejudge.cli`.  Keeping the
actual logic in the package makes it possible to launch the experiment via
``python -m linejudge`` *or* by executing this file directly.
"""
from __future__ import annotations

from linejudge.cli import main


if __name__ == "__main__":
    main()
