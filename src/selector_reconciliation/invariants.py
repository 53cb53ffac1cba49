from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from selector_reconciliation.contracts import (
    Command,
    DisplayConfig,
    MachineState,
    Option,
    SessionState,
    UIState,
)


class InvariantId(str, Enum):
    SINGLE_COMMAND = "single_command.v1"
    ONE_IN_FLIGHT = "one_in_flight.v1"
    LOADING_GATE = "loading_gate.v1"
    CREATE_OFFER_SUPPRESSION = "create_offer_suppression.v1"


class Flow(str, Enum):
    CONTINUE = "continue"
    STOP = "stop"


class Validity(str, Enum):
    VALID = "valid"
    DEGRADED = "degraded"
    INVALID = "invalid"


@dataclass(frozen=True)
class InvariantOutcome:
    invariant_id: InvariantId
    passed: bool
    reason: str
    flow: Flow
    validity: Validity
    code: str
    details: Mapping[str, Any] = field(default_factory=dict)


class CheckContext(Protocol):
    config: DisplayConfig
    previous_session: SessionState
    next_session: SessionState
    previous_ui: UIState
    next_ui: UIState
    commands: Sequence[Command]


@dataclass(frozen=True)
class TransitionCheckContext:
    config: DisplayConfig
    previous_session: SessionState
    next_session: SessionState
    previous_ui: UIState
    next_ui: UIState
    commands: Sequence[Command] = field(default_factory=tuple)


Checker = Callable[[CheckContext], InvariantOutcome]


def _ok(invariant_id: InvariantId, code: str, details: Optional[Mapping[str, Any]] = None) -> InvariantOutcome:
    detail_map = dict(details or {})
    reason = str(detail_map.get("message") or code)
    return InvariantOutcome(
        invariant_id=invariant_id,
        passed=True,
        reason=reason,
        flow=Flow.CONTINUE,
        validity=Validity.VALID,
        code=code,
        details=detail_map,
    )


def _stop(invariant_id: InvariantId, code: str, message: str, **details: Any) -> InvariantOutcome:
    return InvariantOutcome(
        invariant_id=invariant_id,
        passed=False,
        reason=message,
        flow=Flow.STOP,
        validity=Validity.INVALID,
        code=code,
        details={"message": message, **details},
    )


def exact_primary_match(options: Sequence[Option], query: str) -> bool:
    needle = query.strip().casefold()
    if not needle:
        return False
    return any(opt.primary_label.strip().casefold() == needle for opt in options)


def check_single_command(ctx: CheckContext) -> InvariantOutcome:
    count = len(ctx.commands)
    if count > 1:
        return _stop(
            InvariantId.SINGLE_COMMAND,
            "multiple_commands_emitted",
            "A single interaction emitted more than one command.",
            kinds=[cmd.kind for cmd in ctx.commands],
        )
    return _ok(InvariantId.SINGLE_COMMAND, "single_command_ok", {"count": count})


def check_one_in_flight(ctx: CheckContext) -> InvariantOutcome:
    pending = ctx.previous_session.pending
    if ctx.commands and pending is not None:
        return _stop(
            InvariantId.ONE_IN_FLIGHT,
            "command_while_pending",
            "A command was emitted while another one is awaiting confirmation.",
            pending_kind=pending.command.kind,
            emitted_kind=ctx.commands[0].kind,
        )
    return _ok(InvariantId.ONE_IN_FLIGHT, "in_flight_ok")


def check_loading_gate(ctx: CheckContext) -> InvariantOutcome:
    regressed = (
        ctx.previous_ui.machine_state != MachineState.LOADING
        and ctx.next_ui.machine_state == MachineState.LOADING
    )
    if regressed:
        return _stop(
            InvariantId.LOADING_GATE,
            "loading_regression",
            "Machine state regressed to loading after both gating feeds were available.",
            previous_state=ctx.previous_ui.machine_state.value,
        )
    return _ok(InvariantId.LOADING_GATE, "loading_gate_ok")


def check_create_offer_suppression(ctx: CheckContext) -> InvariantOutcome:
    offer = ctx.next_ui.offer_create
    if offer is None:
        return _ok(InvariantId.CREATE_OFFER_SUPPRESSION, "no_create_offer")
    if not ctx.config.enable_create:
        return _stop(
            InvariantId.CREATE_OFFER_SUPPRESSION,
            "create_offer_while_disabled",
            "A create offer was derived while create is disabled.",
        )
    options = ctx.next_session.options_feed.value or ()
    if exact_primary_match(options, offer.raw_text):
        return _stop(
            InvariantId.CREATE_OFFER_SUPPRESSION,
            "create_offer_despite_exact_match",
            "A create offer was derived although an option's primary label matches exactly.",
            raw_text=offer.raw_text,
        )
    return _ok(InvariantId.CREATE_OFFER_SUPPRESSION, "create_offer_ok")


REGISTRY: dict[InvariantId, Checker] = {
    InvariantId.SINGLE_COMMAND: check_single_command,
    InvariantId.ONE_IN_FLIGHT: check_one_in_flight,
    InvariantId.LOADING_GATE: check_loading_gate,
    InvariantId.CREATE_OFFER_SUPPRESSION: check_create_offer_suppression,
}


def run_checkers(ctx: CheckContext, *, registry: Optional[Mapping[InvariantId, Checker]] = None) -> list[InvariantOutcome]:
    checkers = registry if registry is not None else REGISTRY
    return [checker(ctx) for checker in checkers.values()]


def first_halt(outcomes: Sequence[InvariantOutcome]) -> Optional[InvariantOutcome]:
    for outcome in outcomes:
        if outcome.flow == Flow.STOP:
            return outcome
    return None
