"""
faultline CLI.

Usage:
    faultline run <script> [args...]
    faultline severities
    faultline trace
    faultline version
"""

from .. import __version__

__cli_name__ = "faultline"
