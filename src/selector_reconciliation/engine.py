# selector_reconciliation/engine.py
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from selector_reconciliation.contracts import (
    CREATE_OPTION_KEY,
    ClearCommand,
    ClearRequested,
    Command,
    CreateCommand,
    CreateOffer,
    DefaultValueFeedUpdated,
    DisplayConfig,
    LabelFeedUpdated,
    MachineState,
    MenuOpenChanged,
    Option,
    OptionActivated,
    OptionsFeedUpdated,
    PendingCommand,
    PendingReleased,
    SearchTextChanged,
    SelectCommand,
    SessionEvent,
    SessionState,
    Transition,
    UIState,
)
from selector_reconciliation.invariants import (
    TransitionCheckContext,
    exact_primary_match,
    first_halt,
    run_checkers,
)
from selector_reconciliation.options import synthetic_option

logger = logging.getLogger(__name__)


def initial_session() -> SessionState:
    return SessionState()


# ------------------------------------------------------------------------------
# Derivations (pure)
# ------------------------------------------------------------------------------


def filter_options(options: Sequence[Option], query: str) -> tuple[Option, ...]:
    """Stable, case-insensitive substring filter over either label."""
    needle = query.strip().casefold()
    if not needle:
        return tuple(options)
    return tuple(
        opt
        for opt in options
        if needle in opt.primary_label.casefold() or needle in opt.secondary_label.casefold()
    )


def derive_create_offer(options: Sequence[Option], query: str, config: DisplayConfig) -> Optional[CreateOffer]:
    # Only primary-label equality suppresses the offer; secondary matches do not.
    text = query.strip()
    if not (config.enable_create and config.enable_search and text):
        return None
    if exact_primary_match(options, text):
        return None
    return CreateOffer(raw_text=text)


def _all_options(session: SessionState) -> tuple[Option, ...]:
    return session.options_feed.value or ()


def _effective_query(session: SessionState, config: DisplayConfig) -> str:
    if not config.enable_search or not session.menu_open:
        return ""
    return session.search_text


def resolve_selection(session: SessionState) -> Optional[Option]:
    if session.pending is not None:
        return session.pending.optimistic_selection
    if session.has_confirmed:
        return session.confirmed_selection
    defaults = session.default_value_feed.value or ()
    return defaults[0] if defaults else None


def derive_machine_state(session: SessionState, config: DisplayConfig) -> MachineState:
    if not session.gated_open:
        return MachineState.LOADING
    query = _effective_query(session, config)
    if query.strip():
        if derive_create_offer(_all_options(session), query, config) is not None:
            return MachineState.OFFERING_CREATE
        return MachineState.SEARCHING
    if not _all_options(session) and not config.enable_create:
        return MachineState.EMPTY
    return MachineState.READY


def derive_ui_state(session: SessionState, config: DisplayConfig) -> UIState:
    machine_state = derive_machine_state(session, config)
    query = _effective_query(session, config)
    offer = None
    if machine_state == MachineState.OFFERING_CREATE:
        offer = derive_create_offer(_all_options(session), query, config)
    loading = (
        not session.gated_open
        or session.options_feed.is_loading
        or session.default_value_feed.is_loading
    )
    return UIState(
        visible_options=filter_options(_all_options(session), query),
        selection=resolve_selection(session),
        menu_open=session.menu_open,
        offer_create=offer,
        loading_indicator=loading,
        machine_state=machine_state,
        search_text=query,
    )


# ------------------------------------------------------------------------------
# Transitions
# ------------------------------------------------------------------------------


def _resolve_confirmed_label(session: SessionState, label: Optional[str]) -> Optional[Option]:
    text = (label or "").strip()
    if not text:
        return None
    optimistic = session.pending.optimistic_selection if session.pending else None
    if optimistic is not None and optimistic.primary_label == text:
        return optimistic
    for opt in _all_options(session):
        if opt.primary_label == text:
            return opt
    return synthetic_option(text)


def _dispatched(session: SessionState, command: Command, optimistic: Optional[Option]) -> SessionState:
    return session.model_copy(
        update={
            "pending": PendingCommand(command=command, optimistic_selection=optimistic),
            "search_text": "",
            "menu_open": False,
        }
    )


def _activate(
    session: SessionState, event: OptionActivated, config: DisplayConfig
) -> tuple[SessionState, Optional[Command], Optional[str]]:
    if session.pending is not None:
        return session, None, "command_in_flight"
    if not session.menu_open:
        return session, None, "menu_closed"
    ui = derive_ui_state(session, config)
    key = event.source_key

    if key is None:
        if ui.visible_options:
            key = ui.visible_options[0].source_key
        elif ui.offer_create is not None:
            key = CREATE_OPTION_KEY
        else:
            return session, None, "nothing_to_activate"

    if key == CREATE_OPTION_KEY:
        if ui.offer_create is None:
            return session, None, "create_not_offered"
        raw_text = ui.offer_create.raw_text
        command: Command = CreateCommand(raw_text=raw_text)
        return _dispatched(session, command, synthetic_option(raw_text)), command, None

    for opt in ui.visible_options:
        if opt.source_key == key:
            command = SelectCommand(option=opt)
            return _dispatched(session, command, opt), command, None
    return session, None, "unknown_option"


def _clear(session: SessionState, config: DisplayConfig) -> tuple[SessionState, Optional[Command], Optional[str]]:
    if not config.enable_clear:
        return session, None, "clear_disabled"
    if session.pending is not None:
        return session, None, "command_in_flight"
    if resolve_selection(session) is None:
        return session, None, "nothing_selected"
    command = ClearCommand()
    return _dispatched(session, command, None), command, None


def _apply(
    session: SessionState, event: SessionEvent, config: DisplayConfig
) -> tuple[SessionState, Optional[Command], Optional[str]]:
    if isinstance(event, SearchTextChanged):
        if not config.enable_search:
            return session, None, "search_disabled"
        menu_open = session.menu_open or bool(event.text)
        return session.model_copy(update={"search_text": event.text, "menu_open": menu_open}), None, None

    if isinstance(event, MenuOpenChanged):
        update: dict[str, object] = {"menu_open": event.open}
        if not event.open:
            update["search_text"] = ""
        return session.model_copy(update=update), None, None

    if isinstance(event, OptionActivated):
        return _activate(session, event, config)

    if isinstance(event, ClearRequested):
        return _clear(session, config)

    if isinstance(event, OptionsFeedUpdated):
        update = {
            "options_feed": event.feed,
            "options_seen": session.options_seen or event.feed.is_available,
        }
        return session.model_copy(update=update), None, None

    if isinstance(event, DefaultValueFeedUpdated):
        update = {
            "default_value_feed": event.feed,
            "default_value_seen": session.default_value_seen or event.feed.is_available,
        }
        if event.feed.is_available and session.pending is None:
            # Only the label feed confirms an in-flight command.
            update.update({"has_confirmed": False, "confirmed_selection": None})
        return session.model_copy(update=update), None, None

    if isinstance(event, LabelFeedUpdated):
        update = {"label_feed": event.feed}
        if event.feed.is_available and session.pending is not None:
            update.update(
                {
                    "pending": None,
                    "has_confirmed": True,
                    "confirmed_selection": _resolve_confirmed_label(session, event.feed.value),
                }
            )
        return session.model_copy(update=update), None, None

    if isinstance(event, PendingReleased):
        if session.pending is None:
            return session, None, "nothing_pending"
        # Never confirmed: the optimistic value stays until the next feed update.
        update = {
            "pending": None,
            "has_confirmed": True,
            "confirmed_selection": session.pending.optimistic_selection,
        }
        return session.model_copy(update=update), None, None

    return session, None, "unsupported_event"


def reduce(session: SessionState, event: SessionEvent, config: DisplayConfig) -> Transition:
    """
    One atomic step: (session, event) -> next session, derived UIState and at
    most one command. Rejected events and failed invariant gates leave the
    session untouched.
    """
    previous_ui = derive_ui_state(session, config)
    next_session, command, rejected = _apply(session, event, config)
    if rejected is not None:
        logger.debug("Event %s ignored: %s", event.kind, rejected)
        return Transition(session=session, ui_state=previous_ui, rejected_reason=rejected)

    next_ui = derive_ui_state(next_session, config)
    ctx = TransitionCheckContext(
        config=config,
        previous_session=session,
        next_session=next_session,
        previous_ui=previous_ui,
        next_ui=next_ui,
        commands=(command,) if command is not None else (),
    )
    halt = first_halt(run_checkers(ctx))
    if halt is not None:
        logger.warning("Transition on %s dropped by %s: %s", event.kind, halt.invariant_id.value, halt.reason)
        return Transition(session=session, ui_state=previous_ui, rejected_reason=f"invariant:{halt.code}")

    if command is not None:
        logger.debug("Event %s emitted %s command", event.kind, command.kind)
    return Transition(session=next_session, ui_state=next_ui, command=command)


def replay(
    events: Iterable[SessionEvent],
    config: DisplayConfig,
    *,
    session: Optional[SessionState] = None,
) -> list[Transition]:
    current = session or initial_session()
    transitions: list[Transition] = []
    for event in events:
        transition = reduce(current, event, config)
        transitions.append(transition)
        current = transition.session
    return transitions
