"""Entrypoint for `python -m relaynav`."""

from .cli import main


if __name__ == "__main__":
    main()
