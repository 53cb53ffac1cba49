from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from selector_reconciliation.adapters.action_handles import CallbackAction, RecordingValue
from selector_reconciliation.contracts import DisplayConfig, UIState
from selector_reconciliation.dispatcher import ActionHandles
from selector_reconciliation.session import SingleSelector


@dataclass(frozen=True)
class StepExecution:
    step_index: int
    step: str
    machine_state: str
    selection: str | None
    visible: list[str]
    offer_create: str | None
    loading: bool
    rejected: str | None


@dataclass(frozen=True)
class ScenarioExecution:
    scenario: str
    steps: list[StepExecution]
    invocations: dict[str, list[Any]] = field(default_factory=dict)
    linked_label: list[str | None] = field(default_factory=list)


def load_scenario_packs(packs_dir: Path) -> list[dict[str, Any]]:
    packs: list[dict[str, Any]] = []
    for path in sorted(packs_dir.glob("*.json")):
        payload = json.loads(path.read_text(encoding="utf-8"))
        payload["_source"] = str(path)
        packs.append(payload)
    return packs


def _handles(pack: dict[str, Any], calls: dict[str, list[Any]], label: RecordingValue) -> ActionHandles:
    executable = pack.get("executable", {})

    def _action(name: str) -> CallbackAction:
        calls[name] = []
        return CallbackAction(callback=calls[name].append, executable=bool(executable.get(name, True)))

    return ActionHandles(
        select=_action("select"),
        create=_action("create"),
        clear=_action("clear"),
        linked_label=label,
        linked_id=RecordingValue(),
    )


def _apply_step(selector: SingleSelector, step: dict[str, Any]) -> UIState:
    kind = str(step.get("type", ""))
    if kind == "options":
        return selector.update_options_feed(step.get("feed"))
    if kind == "default_value":
        return selector.update_default_value_feed(step.get("feed"))
    if kind == "label":
        return selector.update_label_feed(step.get("feed"))
    if kind == "type":
        return selector.on_search_text_change(str(step.get("text", "")))
    if kind == "open":
        return selector.on_menu_open_change(True)
    if kind == "close":
        return selector.on_menu_open_change(False)
    if kind == "activate":
        return selector.on_option_activate(step.get("key"))
    if kind == "clear":
        return selector.on_clear()
    selector.last_rejection = f"unknown_step:{kind}"
    return selector.ui_state


def run_scenario(pack: dict[str, Any]) -> ScenarioExecution:
    calls: dict[str, list[Any]] = {}
    label = RecordingValue()
    selector = SingleSelector(DisplayConfig.from_mapping(pack.get("config", {})), _handles(pack, calls, label))

    steps: list[StepExecution] = []
    for index, step in enumerate(pack.get("steps", []), start=1):
        if not isinstance(step, dict):
            continue
        ui = _apply_step(selector, step)
        steps.append(
            StepExecution(
                step_index=index,
                step=str(step.get("type", "")),
                machine_state=ui.machine_state.value,
                selection=ui.selection.primary_label if ui.selection else None,
                visible=[opt.primary_label for opt in ui.visible_options],
                offer_create=ui.offer_create.label if ui.offer_create else None,
                loading=ui.loading_indicator,
                rejected=selector.last_rejection,
            )
        )

    return ScenarioExecution(
        scenario=str(pack.get("scenario") or pack.get("_source") or "scenario"),
        steps=steps,
        invocations=calls,
        linked_label=list(label.history),
    )
