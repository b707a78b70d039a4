"""
Entry point for running the imagetest suite as a module.

Usage: python -m imagetest [options]
"""

from imagetest.cli.parser import main

if __name__ == "__main__":
    main()
