"""Tests for the interactive selector and key decoding."""

import io
import os
from pathlib import Path
from typing import Iterable, List, Optional

import pytest
from rich.console import Console

from swp.plugins.models import RiskLevel, ScanResult
from swp.plugins.terminal import KeyReader, TerminalError, TerminalSession, decode_key
from swp.plugins.ui import (
    PAGE_SIZE,
    Action,
    InteractiveSelector,
    SelectionOutcome,
    SortBy,
)


def _result(name: str, size: int, risk: RiskLevel = RiskLevel.LOW, days: int = 1) -> ScanResult:
    return ScanResult(
        path=Path("/data") / name,
        size=size,
        description=f"{size} B | {days} days old | Type: Unknown | Git: NotInRepo",
        risk_level=risk,
    )


def _selector(results: List[ScanResult], **kwargs) -> InteractiveSelector:
    return InteractiveSelector(results, console=Console(width=100, record=True), **kwargs)


class _FakeSession:
    def __init__(self, keys: Iterable[Optional[str]], height: int = 30) -> None:
        self._keys = list(keys)
        self.height = height
        self.frames = 0
        self.entered = False
        self.exited = False

    def __enter__(self) -> "_FakeSession":
        self.entered = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.exited = True

    def draw(self, renderable) -> None:
        Console(width=100, file=io.StringIO()).print(renderable)
        self.frames += 1

    def read_key(self, timeout: float) -> Optional[str]:
        return self._keys.pop(0)


def test_initial_state_sorts_by_size_and_highlights_first() -> None:
    selector = _selector([_result("small", 10), _result("big", 300), _result("mid", 50)])

    assert [item.result.path.name for item in selector.items] == ["big", "mid", "small"]
    assert selector.highlighted == 0
    assert selector.sort_by is SortBy.SIZE
    assert not selector.show_help


def test_empty_selector_has_no_highlight_and_run_skips_terminal() -> None:
    def _session_factory():  # pragma: no cover - must not be called
        raise AssertionError("terminal should not be touched")

    selector = _selector([], session_factory=_session_factory)

    assert selector.highlighted is None
    selector.handle_action(Action.DOWN)
    selector.handle_action(Action.PAGE_DOWN)
    assert selector.highlighted is None
    assert selector.run() == []


def test_toggle_current_item() -> None:
    selector = _selector([_result("a", 2), _result("b", 1)])

    selector.handle_key("space")
    assert selector.get_selected_items() == [selector.items[0].result]

    selector.handle_key("space")
    assert selector.get_selected_items() == []


def test_toggle_all_twice_deselects_everything() -> None:
    selector = _selector([_result("a", 3), _result("b", 2), _result("c", 1)])
    selector.handle_key("space")

    selector.handle_key("a")
    assert all(item.selected for item in selector.items)

    selector.handle_key("a")
    assert not any(item.selected for item in selector.items)


def test_sort_cycle_order_and_highlight_reset() -> None:
    selector = _selector([_result("a", 3), _result("b", 2), _result("c", 1)])
    selector.handle_key("down")
    seen = []

    for _ in range(4):
        selector.handle_key("s")
        seen.append(selector.sort_by)
        assert selector.highlighted == 0

    assert seen == [SortBy.AGE, SortBy.RISK, SortBy.NAME, SortBy.SIZE]


def test_risk_sort_puts_most_severe_first() -> None:
    selector = _selector(
        [
            _result("safe", 3, RiskLevel.SAFE),
            _result("critical", 2, RiskLevel.CRITICAL),
            _result("medium", 1, RiskLevel.MEDIUM),
        ]
    )
    selector.sort_by = SortBy.RISK

    selector.sort_items()

    assert [item.result.risk_level for item in selector.items] == [
        RiskLevel.CRITICAL,
        RiskLevel.MEDIUM,
        RiskLevel.SAFE,
    ]


def test_name_and_age_sorts() -> None:
    selector = _selector(
        [_result("zeta", 3, days=7), _result("alpha", 2, days=30), _result("mu", 1, days=12)]
    )

    selector.sort_by = SortBy.NAME
    selector.sort_items()
    assert [item.result.path.name for item in selector.items] == ["alpha", "mu", "zeta"]

    selector.sort_by = SortBy.AGE
    selector.sort_items()
    # Descriptions compare as text, so the leading size decides.
    assert [item.result.path.name for item in selector.items] == ["mu", "alpha", "zeta"]


def test_navigation_wraps_around() -> None:
    selector = _selector([_result("a", 3), _result("b", 2), _result("c", 1)])

    selector.handle_key("up")
    assert selector.highlighted == 2
    selector.handle_key("down")
    assert selector.highlighted == 0
    selector.handle_key("down")
    selector.handle_key("down")
    assert selector.highlighted == 2


def test_page_navigation_clamps_without_wrapping() -> None:
    selector = _selector([_result(f"f{index:02d}", 100 - index) for index in range(25)])

    selector.handle_key("pagedown")
    assert selector.highlighted == PAGE_SIZE
    selector.handle_key("pagedown")
    selector.handle_key("pagedown")
    assert selector.highlighted == 24
    selector.handle_key("pageup")
    assert selector.highlighted == 24 - PAGE_SIZE
    selector.handle_key("pageup")
    selector.handle_key("pageup")
    assert selector.highlighted == 0


def test_home_and_end() -> None:
    selector = _selector([_result("a", 3), _result("b", 2), _result("c", 1)])

    selector.handle_key("end")
    assert selector.highlighted == 2
    selector.handle_key("home")
    assert selector.highlighted == 0


def test_help_overlay_ignores_everything_but_help() -> None:
    selector = _selector([_result("a", 3), _result("b", 2)])

    selector.handle_key("?")
    assert selector.show_help
    assert selector.handle_key("q") is None
    selector.handle_key("space")
    selector.handle_key("down")
    assert selector.highlighted == 0
    assert selector.get_selected_items() == []

    selector.handle_key("h")
    assert not selector.show_help


@pytest.mark.parametrize("key", ["q", "esc", "ctrl-c"])
def test_cancel_keys_return_empty_selection(key: str) -> None:
    selector = _selector([_result("a", 3)])
    selector.handle_key("space")

    assert selector.handle_key(key) == []
    assert selector.outcome is SelectionOutcome.CANCELLED


def test_confirm_returns_selection_in_display_order() -> None:
    selector = _selector([_result("a", 3), _result("b", 2), _result("c", 1)])
    selector.handle_key("end")
    selector.handle_key("space")
    selector.handle_key("home")
    selector.handle_key("space")

    chosen = selector.handle_key("enter")

    assert [result.path.name for result in chosen] == ["a", "c"]
    assert selector.outcome is SelectionOutcome.CONFIRMED


def test_unknown_keys_are_ignored() -> None:
    selector = _selector([_result("a", 3)])

    assert selector.handle_key("x") is None
    assert selector.handle_key("unknown") is None


def test_run_loop_polls_until_confirmed() -> None:
    session = _FakeSession([None, "down", "space", None, "enter"], height=12)
    selector = _selector(
        [_result("a", 3), _result("b", 2)],
        session_factory=lambda: session,
    )

    chosen = selector.run()

    assert [result.path.name for result in chosen] == ["b"]
    assert session.entered and session.exited
    assert session.frames == 5


def test_run_loop_releases_session_on_error() -> None:
    class _ExplodingSession(_FakeSession):
        def read_key(self, timeout: float) -> Optional[str]:
            raise OSError("read failed")

    session = _ExplodingSession([])
    selector = _selector([_result("a", 3)], session_factory=lambda: session)

    with pytest.raises(OSError):
        selector.run()
    assert session.exited


def test_render_shows_selection_summary_and_help() -> None:
    console = Console(width=120, record=True)
    selector = InteractiveSelector([_result("a.bin", 2048), _result("b.bin", 1024)], console=console)
    selector.handle_key("space")

    console.print(selector.render(20))
    screen = console.export_text()
    assert "1/2 selected" in screen
    assert "Sort: Size" in screen
    assert "a.bin" in screen

    selector.handle_key("h")
    console.print(selector.render(20))
    assert "Toggle this help" in console.export_text()


@pytest.mark.parametrize(
    ("buffer", "expected"),
    [
        ("\x1b[A", ("up", "")),
        ("\x1bOB", ("down", "")),
        ("\x1b[5~rest", ("pageup", "rest")),
        ("\x1b[6~", ("pagedown", "")),
        ("\x1b[H", ("home", "")),
        ("\x1b[1~", ("home", "")),
        ("\x1b[4~", ("end", "")),
        ("\x1bOF", ("end", "")),
        ("\x1b", ("esc", "")),
        ("\x1bq", ("esc", "q")),
        ("\x1b[15~", ("unknown", "")),
        ("\r", ("enter", "")),
        ("\n", ("enter", "")),
        ("\x03", ("ctrl-c", "")),
        (" a", ("space", "a")),
        ("", (None, "")),
    ],
)
def test_decode_key(buffer: str, expected: tuple) -> None:
    assert decode_key(buffer) == expected


def test_key_reader_yields_one_key_per_call() -> None:
    read_fd, write_fd = os.pipe()
    try:
        os.write(write_fd, b"\x1b[B q")
        reader = KeyReader(read_fd)

        assert reader.read_key(0.5) == "down"
        assert reader.read_key(0.5) == "space"
        assert reader.read_key(0.5) == "q"
        assert reader.read_key(0.01) is None
    finally:
        os.close(read_fd)
        os.close(write_fd)


def test_key_reader_joins_character_split_across_reads() -> None:
    read_fd, write_fd = os.pipe()
    try:
        encoded = "é".encode("utf-8")
        reader = KeyReader(read_fd)

        os.write(write_fd, encoded[:1])
        assert reader.read_key(0.5) is None
        os.write(write_fd, encoded[1:])
        assert reader.read_key(0.5) == "é"
    finally:
        os.close(read_fd)
        os.close(write_fd)


def test_terminal_session_requires_interactive_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO())

    with pytest.raises(TerminalError):
        with TerminalSession(Console(file=io.StringIO())):
            pass
