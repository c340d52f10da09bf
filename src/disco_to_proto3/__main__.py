"""Module entry point for `python -m disco_to_proto3`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
