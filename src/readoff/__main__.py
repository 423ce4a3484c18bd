"""Main entry point for the readoff package."""

from readoff.cli import main

if __name__ == "__main__":
    main()
