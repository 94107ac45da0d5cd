"""Module entrypoint for ``python -m lazybrowser``."""

from .cli import main


if __name__ == "__main__":
    main()
