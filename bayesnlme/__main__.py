"""
Main Entry Point for bayesnlme
==============================

Entry point when bayesnlme is called as a module:
    python -m bayesnlme [args...]
"""

from bayesnlme.cli.main import main

if __name__ == "__main__":
    main()
