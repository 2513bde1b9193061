"""
Command-line interface for the relaunch package.
"""

from .main import build_parser, main_cli

__all__ = [
    "build_parser",
    "main_cli",
]
