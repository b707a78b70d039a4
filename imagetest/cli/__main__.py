"""
Entry point for running the imagetest CLI as a module.

Usage: python -m imagetest.cli [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
