"""
awsimages/cli - images 명령줄 인터페이스

Usage:
    from awsimages.cli import cli, main
"""

from .app import cli, main

__all__ = ["cli", "main"]
