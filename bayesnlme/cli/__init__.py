"""
Command Line Interface for bayesnlme
====================================

Usage:
    bayesnlme --config run.yaml
    bayesnlme --config run.yaml --data-file crack_growth.txt --iterations 5000
"""

from bayesnlme.cli.args_parser import create_parser, validate_args
from bayesnlme.cli.commands import dispatch_command
from bayesnlme.cli.main import main

__all__ = [
    "main",
    "create_parser",
    "dispatch_command",
    "validate_args",
]
