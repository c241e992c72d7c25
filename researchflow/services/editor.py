"""Editor model: a markdown buffer with a selection, plus debounced autosave.

Formatting commands edit the buffer explicitly (``**bold**``, ``- item``,
``[text](url)`` ...), so every change is a pure function of the text and
the selection.
"""

import logging
import threading
from typing import Callable, Optional

from researchflow.errors import ValidationError
from researchflow.utils.text import word_count

logger = logging.getLogger(__name__)

INLINE_MARKERS: dict[str, tuple[str, str]] = {
    "bold": ("**", "**"),
    "italic": ("*", "*"),
    "underline": ("<u>", "</u>"),
}

LINE_PREFIXES: dict[str, str] = {
    "bullet_list": "- ",
    "quote": "> ",
}

ALIGN_COMMANDS = ("align_left", "align_center", "align_right")

COMMANDS = tuple(INLINE_MARKERS) + tuple(LINE_PREFIXES) + ("numbered_list", "link") + ALIGN_COMMANDS


class EditorDocument:
    """Text of one section with a selection ``[start, end)``."""

    def __init__(self, text: str = ""):
        self.text = text
        self.start = self.end = len(text)

    # ── Selection ──────────────────────────────────────────────────────

    @property
    def caret(self) -> int:
        return self.end

    @property
    def selected(self) -> str:
        return self.text[self.start:self.end]

    def select(self, start: int, end: Optional[int] = None) -> None:
        """Set the selection; positions are clamped to the text."""
        if end is None:
            end = start
        start = max(0, min(start, len(self.text)))
        end = max(0, min(end, len(self.text)))
        self.start, self.end = min(start, end), max(start, end)

    def set_text(self, text: str) -> None:
        """Replace the whole buffer and put the caret at the end."""
        self.text = text
        self.start = self.end = len(text)

    # ── Editing ────────────────────────────────────────────────────────

    def insert(self, value: str) -> None:
        """Insert *value* at the caret, replacing any selection."""
        self.text = self.text[:self.start] + value + self.text[self.end:]
        self.start = self.end = self.start + len(value)

    def insert_citation(self, inline: str) -> None:
        """Insert an inline citation at the caret, spaced from the word before it."""
        before = self.text[:self.start]
        if before and not before[-1].isspace() and before[-1] not in "([":
            inline = " " + inline
        self.insert(inline)

    def apply(self, command: str, value: Optional[str] = None) -> None:
        """Run a formatting command against the current selection.

        Raises:
            ValidationError: Unknown command, or ``link`` without a URL
        """
        if command in INLINE_MARKERS:
            self._toggle_inline(*INLINE_MARKERS[command])
        elif command in LINE_PREFIXES:
            self._toggle_lines(lambda _i: LINE_PREFIXES[command])
        elif command == "numbered_list":
            self._toggle_lines(lambda i: f"{i + 1}. ")
        elif command == "link":
            self._link(value)
        elif command in ALIGN_COMMANDS:
            # Markdown carries no alignment
            return
        else:
            raise ValidationError(f"Unknown formatting command: {command}")

    def word_count(self) -> int:
        return word_count(self.text)

    # ── Private ───────────────────────────────────────────────────────

    def _toggle_inline(self, prefix: str, suffix: str) -> None:
        s, e = self.start, self.end
        outer_s, outer_e = s - len(prefix), e + len(suffix)
        if (
            outer_s >= 0
            and self.text[outer_s:s] == prefix
            and self.text[e:outer_e] == suffix
        ):
            self.text = self.text[:outer_s] + self.text[s:e] + self.text[outer_e:]
            self.start, self.end = outer_s, outer_s + (e - s)
            return
        self.text = self.text[:s] + prefix + self.text[s:e] + suffix + self.text[e:]
        self.start, self.end = s + len(prefix), e + len(prefix)

    def _toggle_lines(self, prefix_for: Callable[[int], str]) -> None:
        line_start = self.text.rfind("\n", 0, self.start) + 1
        line_end = self.text.find("\n", self.end)
        if line_end == -1:
            line_end = len(self.text)
        lines = self.text[line_start:line_end].split("\n")

        prefixes = [prefix_for(i) for i in range(len(lines))]
        if all(line.startswith(p) for line, p in zip(lines, prefixes)):
            new_lines = [line[len(p):] for line, p in zip(lines, prefixes)]
        else:
            new_lines = [p + line for line, p in zip(lines, prefixes)]

        block = "\n".join(new_lines)
        self.text = self.text[:line_start] + block + self.text[line_end:]
        self.start, self.end = line_start, line_start + len(block)

    def _link(self, url: Optional[str]) -> None:
        if not url or not url.strip():
            raise ValidationError("A link needs a URL")
        url = url.strip()
        label = self.selected or url
        self.text = self.text[:self.start] + f"[{label}]({url})" + self.text[self.end:]
        self.start = self.end = self.start + len(label) + len(url) + 4


class Autosaver:
    """Debounced saver: the last change wins after *delay* seconds of quiet.

    ``flush()`` saves immediately (explicit save button, keyboard shortcut).
    ``status`` moves through ``idle`` -> ``saving`` -> ``saved``.
    """

    def __init__(
        self,
        save: Callable[[str], None],
        delay: float = 0.8,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self._save = save
        self.delay = delay
        self._on_status = on_status
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[str] = None
        self.status = "idle"

    def touch(self, text: str) -> None:
        """Record a change and restart the debounce timer."""
        with self._lock:
            self._pending = text
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Save any pending change now.

        Returns:
            True if something was saved
        """
        with self._lock:
            text = self._take_pending()
        if text is None:
            return False
        self._run(text)
        return True

    def cancel(self) -> None:
        """Drop the pending change without saving it."""
        with self._lock:
            self._take_pending()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def _take_pending(self) -> Optional[str]:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        text, self._pending = self._pending, None
        return text

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            text, self._pending = self._pending, None
        if text is None:
            return
        try:
            self._run(text)
        except Exception:
            logger.exception("Autosave failed")
            self._set_status("idle")

    def _run(self, text: str) -> None:
        self._set_status("saving")
        self._save(text)
        self._set_status("saved")

    def _set_status(self, status: str) -> None:
        self.status = status
        if self._on_status is not None:
            self._on_status(status)
