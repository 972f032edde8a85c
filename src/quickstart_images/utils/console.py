"""
Console output utilities for consistent user messaging.

These are for direct user interaction and should NOT be replaced with logger calls.
"""

import sys


def print_success(message: str) -> None:
    """Print a success message with checkmark."""
    print(f"✓ {message}")


def print_error(message: str) -> None:
    """Print an error message with X mark."""
    print(f"✗ {message}", file=sys.stderr)


def console_progress(fraction: float, message: str) -> None:
    """Print progress to stderr."""
    pct = int(fraction * 100)
    print(f"  [{pct:3d}%] {message}", file=sys.stderr, flush=True)
