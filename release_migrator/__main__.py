#!/usr/bin/env python3
"""
Main execution module for the Helm release migration tool
"""

from release_migrator.cli.commands import main

if __name__ == "__main__":
    main()
