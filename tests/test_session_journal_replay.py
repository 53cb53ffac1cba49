from __future__ import annotations

from pathlib import Path
from typing import Any

from conftest import PlatformHandles

from selector_reconciliation.adapters.persistence import load_session_events, read_jsonl, replay_session
from selector_reconciliation.contracts import DisplayConfig, MachineState
from selector_reconciliation.session import SingleSelector


def test_committed_events_are_journaled_and_replay_to_same_state(
    tmp_path: Path,
    config: DisplayConfig,
    platform: PlatformHandles,
    options_feed: dict[str, Any],
    default_value_feed: dict[str, Any],
) -> None:
    journal = tmp_path / "journal" / "session.jsonl"
    selector = SingleSelector(config, platform.as_action_handles(), journal_path=journal, session_key="s1")

    selector.update_options_feed(options_feed)
    selector.update_default_value_feed(default_value_feed)
    selector.on_search_text_change("label2")
    selector.on_option_activate()
    selector.on_option_activate()  # rejected: menu closed, not journaled
    selector.update_label_feed({"status": "available", "value": "label2"})

    records = [obj for _, obj in read_jsonl(journal)]
    assert [rec["seq"] for rec in records] == [1, 2, 3, 4, 5]
    assert records[3]["command"]["kind"] == "select"
    assert all(rec["event_id"].startswith("evt_") for rec in records)

    events = load_session_events(journal)
    assert [event.kind for event in events] == [
        "options_feed_updated",
        "default_value_feed_updated",
        "search_text_changed",
        "option_activated",
        "label_feed_updated",
    ]
    assert replay_session(journal, config) == selector.ui_state


def test_replay_of_missing_journal_is_initial_state(tmp_path: Path, config: DisplayConfig) -> None:
    ui = replay_session(tmp_path / "absent.jsonl", config)

    assert ui.machine_state is MachineState.LOADING
    assert ui.selection is None
