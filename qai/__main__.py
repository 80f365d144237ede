"""Allow ``python -m qai``; used by the shell widgets' child processes."""

from .cli import main


if __name__ == "__main__":
    main()
