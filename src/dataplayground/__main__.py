"""Entry point for 'python -m dataplayground' command."""

from dataplayground.cli import main

if __name__ == "__main__":
    main()
