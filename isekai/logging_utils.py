"""Logging utilities for Isekai Chronicles.

Provides color-coded console output that separates deterministic simulation steps
from narrative generation calls.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Simulation (terrain, movement, combat rolls)
    YELLOW = "\033[93m"    # Narrative generation calls
    RED = "\033[91m"       # Errors and fallbacks
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes unless ISEKAI_NO_COLOR is set."""
    if os.getenv("ISEKAI_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def debug_llm_enabled() -> bool:
    return os.getenv("DEBUG_LLM", "").lower() in ("1", "true", "yes")


def log_world(message: str) -> None:
    """Log a deterministic simulation step (blue)."""
    print(colored(f"{LOG_TAG_WORLD} {message}", Color.BLUE))


def log_llm(message: str) -> None:
    """Log a narrative generation call (yellow)."""
    print(colored(f"{LOG_TAG_LLM} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or fallback (red)."""
    print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))


# Markers for operation types (color-blind accessible)
LOG_TAG_WORLD = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"
