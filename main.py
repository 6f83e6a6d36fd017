#!/usr/bin/env python3
"""
lmchat - terminal chat client for streaming LLM endpoints.

This is the main entry point for running from a source checkout.
It provides a simple way to start the interactive session.
"""

import sys
from pathlib import Path

# Add the current directory to Python path to ensure imports work
sys.path.insert(0, str(Path(__file__).parent))


def main():
    try:
        from lmchat.main import cli
    except ImportError as e:
        print(f"Error: Failed to import required modules: {e}")
        print("Please make sure you have installed the package with:")
        print("  pip install -e .")
        sys.exit(1)
    cli()


if __name__ == "__main__":
    main()
