"""Coloured terminal output."""

import sys

_GREEN = "\x1b[32m"
_RED = "\x1b[31m"
_RESET = "\x1b[0m"


def green(text):
    """Return ``text`` wrapped in the ANSI green colour."""
    return f"{_GREEN}{text}{_RESET}"


def red(text):
    """Return ``text`` wrapped in the ANSI red colour."""
    return f"{_RED}{text}{_RESET}"


def cprint(text):
    """Write ``text`` to standard output as is, without adding a newline."""
    sys.stdout.write(str(text))
    sys.stdout.flush()