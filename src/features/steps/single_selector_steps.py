# features/steps/single_selector_steps.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from behave import given, then, when  # type: ignore[import-untyped]

from selector_reconciliation.adapters.action_handles import CallbackAction, RecordingValue
from selector_reconciliation.contracts import DisplayConfig
from selector_reconciliation.dispatcher import ActionHandles
from selector_reconciliation.session import SingleSelector


@dataclass
class SelectorStepState:
    selector: SingleSelector | None = None
    calls: dict[str, list[Any]] = field(default_factory=dict)
    records: dict[str, dict[str, Any]] = field(default_factory=dict)


def get_selector_step_state(context: Any) -> SelectorStepState:
    state = getattr(context, "_selector_step_state", None)
    if not isinstance(state, SelectorStepState):
        state = SelectorStepState()
        setattr(context, "_selector_step_state", state)
    return state


def _selector(context: Any) -> SingleSelector:
    state = get_selector_step_state(context)
    assert state.selector is not None, "selector not mounted"
    return state.selector


def _record(index: int) -> dict[str, Any]:
    return {
        "firstLabel": {"displayValue": f"label{index}"},
        "secondLabel": {"displayValue": f"secondLabel{index}"},
        "imgUrl": {"status": "available", "displayValue": f"url{index}"},
    }


@given("a selector with create, clear and search enabled")
def step_mount(context: Any) -> None:
    state = get_selector_step_state(context)
    state.calls = {"select": [], "create": [], "clear": []}
    handles = ActionHandles(
        select=CallbackAction(callback=state.calls["select"].append),
        create=CallbackAction(callback=state.calls["create"].append),
        clear=CallbackAction(callback=state.calls["clear"].append),
        linked_label=RecordingValue(),
        linked_id=RecordingValue(),
    )
    config = DisplayConfig(
        enable_create=True,
        enable_clear=True,
        enable_search=True,
        use_avatar=True,
        placeholder="placeholder",
        class_name_prefix="test",
    )
    state.selector = SingleSelector(config, handles)
    state.records = {f"label{i}": _record(i) for i in (1, 2, 3)}


@given('the options feed lists "{a}", "{b}" and "{c}"')
def step_options(context: Any, a: str, b: str, c: str) -> None:
    state = get_selector_step_state(context)
    _selector(context).update_options_feed({"status": "available", "items": [state.records[k] for k in (a, b, c)]})


@given('the default value is "{label}"')
def step_default(context: Any, label: str) -> None:
    state = get_selector_step_state(context)
    _selector(context).update_default_value_feed({"status": "available", "items": [state.records[label]]})
    _selector(context).update_label_feed({"status": "available", "value": None})


@when("the user opens the menu")
def step_open(context: Any) -> None:
    _selector(context).on_menu_open_change(True)


@when("the user clears the selection")
def step_clear(context: Any) -> None:
    _selector(context).on_clear()


@when('the user types "{text}"')
def step_type(context: Any, text: str) -> None:
    _selector(context).on_search_text_change(text)


@when("the user presses Enter")
def step_enter(context: Any) -> None:
    _selector(context).on_option_activate()


@when('the label feed reports "{label}"')
def step_label(context: Any, label: str) -> None:
    _selector(context).update_label_feed({"status": "available", "value": label})


@when("the options feed starts loading")
def step_options_loading(context: Any) -> None:
    _selector(context).update_options_feed({"status": "loading", "items": []})


@then("{count:d} options are shown")
def step_count(context: Any, count: int) -> None:
    entries = _selector(context).props().menu_entries
    assert len(entries) == count, entries


@then('the avatars are "{a}", "{b}" and "{c}"')
def step_avatars(context: Any, a: str, b: str, c: str) -> None:
    styles = [e.avatar.style for e in _selector(context).props().menu_entries if e.avatar is not None]
    assert styles == [f"background-image: url({u})" for u in (a, b, c)], styles


@then("the {action} action was invoked {count:d} time")
def step_invoked(context: Any, action: str, count: int) -> None:
    calls = get_selector_step_state(context).calls[action]
    assert len(calls) == count, calls


@then("the placeholder is visible")
def step_placeholder(context: Any) -> None:
    assert _selector(context).props().placeholder == "placeholder"


@then("the only menu entry reads '{text}'")
def step_only_entry(context: Any, text: str) -> None:
    entries = _selector(context).props().menu_entries
    assert [e.text for e in entries] == [text], entries


@then('the selection is "{label}"')
def step_selection(context: Any, label: str) -> None:
    selection = _selector(context).ui_state.selection
    assert selection is not None and selection.primary_label == label, selection


@then("the loading indicator is visible")
def step_loading(context: Any) -> None:
    assert _selector(context).ui_state.loading_indicator is True
