"""ANSI color codes for colored log output.

Usage:
    from cms_tokens.logging.colors import RED, RESET

    print(f"{RED}Blocked{RESET}")
"""

RESET = "\033[0m"

# Levels
LIGHT_BLUE = "\033[38;5;153m"  # debug, context fields
CYAN = "\033[38;5;51m"  # info
YELLOW = "\033[38;5;226m"  # warning
RED = "\033[38;5;196m"  # error

# Components
MAGENTA = "\033[38;5;201m"  # renderer
GREEN = "\033[38;5;82m"  # resolver
ORANGE = "\033[38;5;208m"  # security

__all__ = [
    "RESET",
    "LIGHT_BLUE",
    "CYAN",
    "YELLOW",
    "RED",
    "MAGENTA",
    "GREEN",
    "ORANGE",
]
