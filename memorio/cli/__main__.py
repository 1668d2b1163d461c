"""
Entry point for running the mastery CLI as a module.

Usage:
    python -m memorio.cli record alice NAMES_FACES --correct -d 9
    python -m memorio.cli stats alice
    python -m memorio.cli --help
"""
from .mastery_cli import main

if __name__ == "__main__":
    main()
