"""
Entry point for running the CLI as a module.

Usage:
    python -m bookquiz.cli import
    python -m bookquiz.cli --help
"""
from .main import main

if __name__ == "__main__":
    main()
