"""Entry point for running taskview as a module."""

from taskview.cli import main

if __name__ == "__main__":
    main()
