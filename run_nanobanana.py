"""
run_nanobanana.py: CLI entry point

This script serves as the command-line interface entry point for
nanobanana. It forwards execution to the CLI logic defined in
`src/nanobanana/cli.py`.

Usage:
    python run_nanobanana.py transform in.png -o out.png --resize 50%

This wrapper allows you to run the tool directly without needing to
modify PYTHONPATH or install the project as a package.

For help on available commands, run:
    python run_nanobanana.py --help
"""
import sys
# Source code in src/ subdirectory
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

import nanobanana.cli as nb_cli

if __name__ == "__main__":
    nb_cli.main()
