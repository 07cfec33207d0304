"""Best-effort clipboard copy: system clipboard first, terminal OSC 52 second."""

from __future__ import annotations

import base64
import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, TextIO

import pyperclip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyResult:
    success: bool
    method: str | None = None


def copy_with_pyperclip(text: str) -> bool:
    if not text:
        return False

    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.debug("System clipboard unavailable: %s", e)
        return False

    try:
        return pyperclip.paste() == text
    except pyperclip.PyperclipException:
        # Write-only clipboards (some SSH forwards) still received the text.
        return True


def osc52_sequence(text: str, tmux: bool = False) -> str:
    payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
    sequence = f"\x1b]52;c;{payload}\x07"
    if tmux:
        # DCS passthrough, otherwise tmux swallows the OSC.
        sequence = f"\x1bPtmux;\x1b{sequence}\x1b\\"
    return sequence


def copy_with_osc52(text: str, stream: TextIO | None = None) -> bool:
    """Ask the terminal emulator to set its clipboard.

    Writes to ``stream`` if given, else to the process's original stdout,
    which stays attached to the terminal while the TUI redirects
    ``sys.stdout``.
    """
    if not text:
        return False

    sequence = osc52_sequence(text, tmux=bool(os.getenv("TMUX")))
    for output in (stream, sys.__stdout__):
        if output is None:
            continue
        try:
            output.write(sequence)
            output.flush()
            return True
        except (OSError, ValueError) as e:
            logger.debug("Could not write OSC 52 sequence: %s", e)
    return False


def copy_text(text: str) -> CopyResult:
    """Try the system clipboard, then exactly one fallback."""
    mechanisms: tuple[tuple[str, Callable[[str], bool]], ...] = (
        ("pyperclip", copy_with_pyperclip),
        ("osc52", copy_with_osc52),
    )

    for name, mechanism in mechanisms:
        if mechanism(text):
            logger.debug("Copied %d characters via %s", len(text), name)
            return CopyResult(success=True, method=name)

    logger.warning("No clipboard mechanism accepted the text")
    return CopyResult(success=False)
