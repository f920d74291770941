"""
avpauthz - Command Line Interface
"""

from avpauthz.cli.main import cli

__all__ = ["cli"]
