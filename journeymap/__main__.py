"""Module entry point to run the animator via ``python -m journeymap``."""
from __future__ import annotations

from .main import main


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
