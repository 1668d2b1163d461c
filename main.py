"""
Entry point for the memorio mastery CLI.

Run with:
    python main.py --help
    python main.py record alice NAMES_FACES --correct --difficulty 9
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from memorio.cli.mastery_cli import main

if __name__ == "__main__":
    main()
