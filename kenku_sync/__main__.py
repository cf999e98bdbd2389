"""
Entry point for kenku-sync.

Usage:
    python -m kenku_sync watch --root-dir ~/Music/Kenku
"""

from kenku_sync.cli import main


if __name__ == "__main__":
    main()
