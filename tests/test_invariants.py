from __future__ import annotations

from collections.abc import Callable

from selector_reconciliation.contracts import (
    ClearCommand,
    CreateOffer,
    DisplayConfig,
    MachineState,
    Option,
    OptionsFeed,
    PendingCommand,
    SelectCommand,
    SessionState,
    UIState,
)
from selector_reconciliation.invariants import (
    Flow,
    InvariantId,
    TransitionCheckContext,
    Validity,
    check_create_offer_suppression,
    check_loading_gate,
    check_one_in_flight,
    check_single_command,
    first_halt,
    run_checkers,
)

APPLE = Option(primary_label="Apple", source_key="a")


def _ctx(config: DisplayConfig, **overrides: object) -> TransitionCheckContext:
    values: dict[str, object] = {
        "config": config,
        "previous_session": SessionState(),
        "next_session": SessionState(),
        "previous_ui": UIState(machine_state=MachineState.READY),
        "next_ui": UIState(machine_state=MachineState.READY),
        "commands": (),
    }
    values.update(overrides)
    return TransitionCheckContext(**values)  # type: ignore[arg-type]


def test_all_checkers_pass_for_quiet_transition(config: DisplayConfig) -> None:
    outcomes = run_checkers(_ctx(config))

    assert all(outcome.passed for outcome in outcomes)
    assert first_halt(outcomes) is None
    assert {outcome.invariant_id for outcome in outcomes} == set(InvariantId)


def test_single_command_rejects_two_commands(config: DisplayConfig) -> None:
    outcome = check_single_command(_ctx(config, commands=(ClearCommand(), SelectCommand(option=APPLE))))

    assert outcome.passed is False
    assert outcome.flow is Flow.STOP
    assert outcome.validity is Validity.INVALID
    assert outcome.details["kinds"] == ["clear", "select"]


def test_one_in_flight_rejects_command_while_pending(config: DisplayConfig) -> None:
    pending = SessionState(pending=PendingCommand(command=ClearCommand()))

    outcome = check_one_in_flight(_ctx(config, previous_session=pending, commands=(SelectCommand(option=APPLE),)))

    assert outcome.code == "command_while_pending"
    assert outcome.details["pending_kind"] == "clear"


def test_loading_gate_rejects_regression(config: DisplayConfig) -> None:
    outcome = check_loading_gate(_ctx(config, next_ui=UIState(machine_state=MachineState.LOADING)))

    assert outcome.code == "loading_regression"
    assert outcome.details["previous_state"] == "ready"


def test_create_offer_suppression(make_config: Callable[..., DisplayConfig]) -> None:
    session = SessionState(options_feed=OptionsFeed(status="available", value=(APPLE,)))
    exact = UIState(offer_create=CreateOffer(raw_text="apple"))
    partial = UIState(offer_create=CreateOffer(raw_text="App"))

    enabled = make_config(enable_create=True)
    assert check_create_offer_suppression(_ctx(enabled, next_session=session, next_ui=exact)).code == (
        "create_offer_despite_exact_match"
    )
    assert check_create_offer_suppression(_ctx(enabled, next_session=session, next_ui=partial)).passed is True

    disabled = make_config(enable_create=False)
    assert check_create_offer_suppression(_ctx(disabled, next_session=session, next_ui=partial)).code == (
        "create_offer_while_disabled"
    )
