"""
scplink Command-Line Interface
==============================

This package provides the `scplink` command-line tool, a Click-based
application that uploads and downloads single files over SSH.
"""

__all__ = ["scplink"]
