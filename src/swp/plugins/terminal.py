"""Terminal session handling for the interactive selector.

A :class:`TerminalSession` switches stdin to raw input mode and the screen to
the alternate buffer, and always puts both back: on normal exit, when an
exception unwinds through the ``with`` block, and, as a last resort, from an
``atexit`` hook registered for the lifetime of the session.
"""

from __future__ import annotations

import atexit
import codecs
import logging
import os
import select
import sys
from typing import Any, List, Optional, Tuple

from rich.console import Console, RenderableType
from rich.live import Live
from rich.text import Text

try:
    import termios
except ImportError:  # pragma: no cover - non-POSIX platforms
    termios = None  # type: ignore[assignment]

LOGGER = logging.getLogger(__name__)

ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
}
_SINGLE_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\x03": "ctrl-c",
    " ": "space",
}


class TerminalError(Exception):
    """Raised when the terminal cannot be prepared for interactive use."""


def decode_key(buffer: str) -> Tuple[Optional[str], str]:
    """Split the first key press off ``buffer``.

    Returns:
        Tuple[Optional[str], str]: Key name (``None`` for an empty buffer) and
        the unconsumed remainder. Named keys are ``up``, ``down``, ``home``,
        ``end``, ``pageup``, ``pagedown``, ``enter``, ``esc``, ``ctrl-c`` and
        ``space``; unrecognized escape sequences decode to ``unknown``; any
        other character is returned as-is.
    """
    if not buffer:
        return None, ""

    if buffer.startswith("\x1b"):
        for sequence in sorted(ESCAPE_SEQUENCES, key=len, reverse=True):
            if buffer.startswith(sequence):
                return ESCAPE_SEQUENCES[sequence], buffer[len(sequence) :]
        if len(buffer) > 1 and buffer[1] in "[O":
            # CSI/SS3 sequence we do not bind: consume through its final byte
            for index in range(2, len(buffer)):
                if "@" <= buffer[index] <= "~":
                    return "unknown", buffer[index + 1 :]
            return "unknown", ""
        return "esc", buffer[1:]

    char = buffer[0]
    return _SINGLE_KEYS.get(char, char), buffer[1:]


class KeyReader:
    """Read one key at a time from a file descriptor with a timeout."""

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")

    def read_key(self, timeout: float) -> Optional[str]:
        """Return the next key, or ``None`` if nothing arrived within ``timeout``."""
        if not self._buffer:
            ready, _, _ = select.select([self._fd], [], [], timeout)
            if not ready:
                return None
            data = os.read(self._fd, 64)
            if not data:
                return None
            # a multibyte character may be split across reads
            self._buffer += self._decoder.decode(data)

        key, self._buffer = decode_key(self._buffer)
        return key


class TerminalSession:
    """Context manager owning raw input mode and the alternate screen."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()
        self._fd: Optional[int] = None
        self._saved_attrs: Optional[List[Any]] = None
        self._live: Optional[Live] = None
        self._reader: Optional[KeyReader] = None
        self._active = False

    @property
    def height(self) -> int:
        """Return the current terminal height in rows."""
        return self._console.size.height

    def __enter__(self) -> "TerminalSession":
        if termios is None:
            raise TerminalError("Interactive selection requires a POSIX terminal.")
        if not sys.stdin.isatty():
            raise TerminalError("Interactive selection requires stdin to be a terminal.")

        self._active = True
        atexit.register(self.restore)
        try:
            self._fd = sys.stdin.fileno()
            self._saved_attrs = termios.tcgetattr(self._fd)
            raw = termios.tcgetattr(self._fd)
            raw[3] &= ~(termios.ECHO | termios.ICANON | termios.ISIG | termios.IEXTEN)
            raw[6][termios.VMIN] = 1
            raw[6][termios.VTIME] = 0
            termios.tcsetattr(self._fd, termios.TCSADRAIN, raw)
            self._reader = KeyReader(self._fd)

            self._live = Live(
                Text(""),
                console=self._console,
                screen=True,
                auto_refresh=False,
                transient=True,
            )
            self._live.start()
        except (termios.error, OSError) as exc:
            self.restore()
            raise TerminalError(f"Failed to prepare terminal: {exc}") from exc
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.restore()

    def draw(self, renderable: RenderableType) -> None:
        """Replace the screen contents with ``renderable``."""
        if self._live is not None:
            self._live.update(renderable, refresh=True)

    def read_key(self, timeout: float) -> Optional[str]:
        """Return the next key press or ``None`` after ``timeout`` seconds."""
        if self._reader is None:
            return None
        return self._reader.read_key(timeout)

    def restore(self) -> None:
        """Leave the alternate screen and restore terminal attributes. Idempotent."""
        if not self._active:
            return
        self._active = False

        if self._live is not None:
            try:
                self._live.stop()
            except Exception as exc:  # pragma: no cover - best effort during teardown
                LOGGER.debug("Failed to stop live display: %s", exc)
            self._live = None

        if self._fd is not None and self._saved_attrs is not None and termios is not None:
            try:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
            except (termios.error, OSError) as exc:  # pragma: no cover - terminal gone
                LOGGER.debug("Failed to restore terminal attributes: %s", exc)
            self._saved_attrs = None

        atexit.unregister(self.restore)


__all__ = ["TerminalError", "TerminalSession", "KeyReader", "decode_key", "ESCAPE_SEQUENCES"]
