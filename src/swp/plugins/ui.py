"""Interactive multi-select list for choosing files to delete.

:class:`InteractiveSelector` holds all selection state and reacts to decoded
key names, so it can be driven without a terminal. :meth:`InteractiveSelector.run`
pairs it with a :class:`~swp.plugins.terminal.TerminalSession` and a rich
renderer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from rich import box
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import RiskLevel, ScanResult, severity_rank
from .terminal import TerminalSession
from .utils import format_size

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 10
POLL_INTERVAL_SECONDS = 0.25
# header panel + footer panel + table borders and heading
_CHROME_ROWS = 10

RISK_STYLES: Dict[RiskLevel, str] = {
    RiskLevel.SAFE: "green",
    RiskLevel.LOW: "yellow",
    RiskLevel.MEDIUM: "magenta",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold bright_red",
}

HELP_LINES = (
    ("↑/↓", "Move the highlight (wraps around)"),
    ("PgUp/PgDn", "Move by 10 items"),
    ("Home/End", "Jump to the first or last item"),
    ("Space", "Toggle the highlighted item"),
    ("a", "Select all, or deselect all when everything is selected"),
    ("s", "Cycle sort order: Size, Age, Risk, Name"),
    ("Enter", "Confirm selection"),
    ("q/Esc", "Cancel without selecting anything"),
    ("h/?", "Toggle this help"),
)


class SortBy(str, Enum):
    """Orderings the list can be shown in."""

    SIZE = "Size"
    AGE = "Age"
    RISK = "Risk"
    NAME = "Name"

    def next(self) -> "SortBy":
        members = list(SortBy)
        return members[(members.index(self) + 1) % len(members)]


class Action(str, Enum):
    """Commands produced by key presses."""

    QUIT = "quit"
    CONFIRM = "confirm"
    TOGGLE = "toggle"
    TOGGLE_ALL = "toggle_all"
    SORT = "sort"
    HELP = "help"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"


class SelectionOutcome(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


KEY_BINDINGS: Dict[str, Action] = {
    "q": Action.QUIT,
    "esc": Action.QUIT,
    "ctrl-c": Action.QUIT,
    "enter": Action.CONFIRM,
    "space": Action.TOGGLE,
    "a": Action.TOGGLE_ALL,
    "s": Action.SORT,
    "h": Action.HELP,
    "?": Action.HELP,
    "up": Action.UP,
    "down": Action.DOWN,
    "home": Action.HOME,
    "end": Action.END,
    "pageup": Action.PAGE_UP,
    "pagedown": Action.PAGE_DOWN,
}


@dataclass(slots=True)
class SelectableItem:
    """A scan result plus its checkbox state."""

    result: ScanResult
    selected: bool = False


class InteractiveSelector:
    """Keyboard-driven checklist over scan results.

    Attributes:
        items: Rows in display order.
        highlighted: Index of the highlighted row, ``None`` when empty.
        sort_by: Current ordering.
        show_help: Whether the help overlay is displayed.
        outcome: How the last run ended, ``None`` while running.
    """

    def __init__(
        self,
        results: List[ScanResult],
        *,
        console: Optional[Console] = None,
        session_factory: Optional[Callable[[], TerminalSession]] = None,
    ) -> None:
        self.items: List[SelectableItem] = [SelectableItem(result) for result in results]
        self.highlighted: Optional[int] = 0 if self.items else None
        self.sort_by = SortBy.SIZE
        self.show_help = False
        self.outcome: Optional[SelectionOutcome] = None
        self._console = console or Console()
        self._session_factory = session_factory or (lambda: TerminalSession(self._console))
        self._offset = 0
        self.sort_items()

    # ----------------------------------------------------------------- state

    def sort_items(self) -> None:
        """Re-order the rows by :attr:`sort_by`."""
        if self.sort_by is SortBy.SIZE:
            self.items.sort(key=lambda item: item.result.size, reverse=True)
        elif self.sort_by is SortBy.AGE:
            self.items.sort(key=lambda item: item.result.description)
        elif self.sort_by is SortBy.RISK:
            self.items.sort(key=lambda item: severity_rank(item.result.risk_level))
        else:
            self.items.sort(key=lambda item: item.result.path.name)

    def cycle_sort(self) -> None:
        self.sort_by = self.sort_by.next()
        self.sort_items()
        self.highlighted = 0 if self.items else None
        self._offset = 0

    def toggle_current_item(self) -> None:
        if self.highlighted is not None:
            item = self.items[self.highlighted]
            item.selected = not item.selected

    def toggle_all_items(self) -> None:
        """Deselect everything if all rows are selected, otherwise select all."""
        target = not all(item.selected for item in self.items)
        for item in self.items:
            item.selected = target

    def next_item(self) -> None:
        if self.highlighted is not None:
            self.highlighted = (self.highlighted + 1) % len(self.items)

    def previous_item(self) -> None:
        if self.highlighted is not None:
            self.highlighted = (self.highlighted - 1) % len(self.items)

    def first_item(self) -> None:
        if self.items:
            self.highlighted = 0

    def last_item(self) -> None:
        if self.items:
            self.highlighted = len(self.items) - 1

    def page_up(self) -> None:
        if self.highlighted is not None:
            self.highlighted = max(0, self.highlighted - PAGE_SIZE)

    def page_down(self) -> None:
        if self.highlighted is not None:
            self.highlighted = min(len(self.items) - 1, self.highlighted + PAGE_SIZE)

    def toggle_help(self) -> None:
        self.show_help = not self.show_help

    def get_selected_items(self) -> List[ScanResult]:
        """Return the selected results in current display order."""
        return [item.result for item in self.items if item.selected]

    def selected_size(self) -> int:
        return sum(item.result.size for item in self.items if item.selected)

    def handle_action(self, action: Action) -> Optional[List[ScanResult]]:
        """Apply ``action``.

        Returns:
            Optional[List[ScanResult]]: The final selection when the action ends
            the session, otherwise ``None``.
        """
        if self.show_help:
            if action is Action.HELP:
                self.toggle_help()
            return None

        if action is Action.QUIT:
            self.outcome = SelectionOutcome.CANCELLED
            return []
        if action is Action.CONFIRM:
            self.outcome = SelectionOutcome.CONFIRMED
            return self.get_selected_items()

        handlers = {
            Action.TOGGLE: self.toggle_current_item,
            Action.TOGGLE_ALL: self.toggle_all_items,
            Action.SORT: self.cycle_sort,
            Action.HELP: self.toggle_help,
            Action.UP: self.previous_item,
            Action.DOWN: self.next_item,
            Action.HOME: self.first_item,
            Action.END: self.last_item,
            Action.PAGE_UP: self.page_up,
            Action.PAGE_DOWN: self.page_down,
        }
        handlers[action]()
        return None

    def handle_key(self, key: str) -> Optional[List[ScanResult]]:
        """Translate ``key`` into an action; unbound keys are ignored."""
        action = KEY_BINDINGS.get(key)
        if action is None:
            return None
        return self.handle_action(action)

    # ------------------------------------------------------------------- loop

    def run(self) -> List[ScanResult]:
        """Drive the selector in the terminal until the user confirms or cancels.

        Raises:
            TerminalError: If the terminal cannot be prepared.
        """
        if not self.items:
            return []

        with self._session_factory() as session:
            while True:
                session.draw(self.render(session.height))
                key = session.read_key(POLL_INTERVAL_SECONDS)
                if key is None:
                    continue
                outcome = self.handle_key(key)
                if outcome is not None:
                    LOGGER.debug("Selection %s with %d items", self.outcome, len(outcome))
                    return outcome

    # -------------------------------------------------------------- rendering

    def render(self, height: int) -> RenderableType:
        """Return the full screen for a terminal ``height`` rows tall."""
        if self.show_help:
            return self._render_help()
        return Group(self._render_header(), self._render_list(height), self._render_footer())

    def _render_header(self) -> Panel:
        selected = sum(1 for item in self.items if item.selected)
        text = Text()
        text.append("Large files", style="bold cyan")
        text.append(f"  {selected}/{len(self.items)} selected")
        text.append(f"  ({format_size(self.selected_size())})", style="bold")
        text.append(f"  Sort: {self.sort_by.value} ▼", style="dim")
        return Panel(text, box=box.ROUNDED)

    def _visible_rows(self, height: int) -> range:
        rows = max(1, height - _CHROME_ROWS)
        if self.highlighted is not None:
            if self.highlighted < self._offset:
                self._offset = self.highlighted
            elif self.highlighted >= self._offset + rows:
                self._offset = self.highlighted - rows + 1
        self._offset = max(0, min(self._offset, max(0, len(self.items) - rows)))
        return range(self._offset, min(len(self.items), self._offset + rows))

    def _render_list(self, height: int) -> Table:
        table = Table(box=box.SIMPLE_HEAD, expand=True, show_edge=False)
        table.add_column("", width=4, no_wrap=True)
        table.add_column("Risk", width=9, no_wrap=True)
        table.add_column("Path", ratio=3, overflow="ellipsis", no_wrap=True)
        table.add_column("Details", ratio=2, overflow="ellipsis", no_wrap=True)

        for index in self._visible_rows(height):
            item = self.items[index]
            is_current = index == self.highlighted
            marker = "►" if is_current else " "
            checkbox = "☑" if item.selected else "☐"
            risk = item.result.risk_level
            table.add_row(
                f"{marker}{checkbox}",
                Text(risk.label, style=RISK_STYLES[risk]),
                str(item.result.path),
                item.result.description,
                style="bold reverse" if is_current else None,
            )
        return table

    def _render_footer(self) -> Panel:
        hints = "↑↓ move  Space toggle  a all  s sort  Enter confirm  q quit  h help"
        return Panel(Text(hints, style="dim"), box=box.ROUNDED)

    def _render_help(self) -> Panel:
        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column(style="bold cyan", no_wrap=True)
        table.add_column()
        for keys, description in HELP_LINES:
            table.add_row(keys, description)
        return Panel(table, title="Help", subtitle="press h or ? to close", box=box.ROUNDED)


__all__ = [
    "Action",
    "InteractiveSelector",
    "KEY_BINDINGS",
    "PAGE_SIZE",
    "SelectableItem",
    "SelectionOutcome",
    "SortBy",
]
