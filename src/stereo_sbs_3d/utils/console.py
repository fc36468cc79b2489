"""
Console formatting helpers.

Each helper returns a string so callers decide when to ``print``. Colours are
plain ANSI escapes and are dropped when ``NO_COLOR`` is set or stdout is not
a terminal.
"""

import os
import sys

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
CYAN = "\033[36m"


def colors_enabled() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _paint(text: str, *codes: str) -> str:
    if not colors_enabled():
        return text
    return "".join(codes) + text + RESET


def title_bar(text: str) -> str:
    return _paint(text, BOLD, CYAN)


def step_complete(text: str) -> str:
    return _paint(f"  -> {text}", GREEN)


def saved_to(text: str) -> str:
    return _paint(f"  {text}", DIM)


def success(text: str) -> str:
    return _paint(text, BOLD, GREEN)


def warning(text: str) -> str:
    return _paint(f"Warning: {text}", YELLOW)


def error(text: str) -> str:
    return _paint(f"Error: {text}", BOLD, RED)
