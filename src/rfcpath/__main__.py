"""Allow running rfcpath as a module."""

from rfcpath.cli import main


if __name__ == "__main__":
    main()
