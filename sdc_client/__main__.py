"""
CLI entry point.

Usage:
    python -m sdc_client list-machines
"""
import sys

from sdc_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
