# selector_reconciliation/session.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from selector_reconciliation.adapters.persistence import append_session_event
from selector_reconciliation.contracts import (
    USER_ACTION_KINDS,
    ClearRequested,
    DefaultValueFeedUpdated,
    DisplayConfig,
    LabelFeedUpdated,
    MenuOpenChanged,
    OptionActivated,
    OptionsFeedUpdated,
    PendingReleased,
    SearchTextChanged,
    SessionEvent,
    SessionState,
    UIState,
)
from selector_reconciliation.dispatcher import ActionHandles, CommandDispatcher, DispatchOutcome
from selector_reconciliation.engine import derive_ui_state, initial_session, reduce
from selector_reconciliation.feeds import normalize_label_feed, normalize_options_feed
from selector_reconciliation.presentation import ComboboxProps, bind

logger = logging.getLogger(__name__)


class SingleSelector:
    """
    One mounted selector: owns search text, menu state and the pending
    command; borrows feeds and action handles from the platform.

    Every entry point processes one event atomically and returns the new
    UIState. Nothing raises across this boundary for feed or user input.
    """

    def __init__(
        self,
        config: DisplayConfig,
        handles: Optional[ActionHandles] = None,
        *,
        journal_path: Optional[Union[str, Path]] = None,
        session_key: str = "session",
    ) -> None:
        self._config = config
        self._dispatcher = CommandDispatcher(handles or ActionHandles())
        self._session: SessionState = initial_session()
        self._ui_state: UIState = derive_ui_state(self._session, config)
        self._journal_path = journal_path
        self._session_key = session_key
        self._seq = 0
        self.last_rejection: Optional[str] = None

    @property
    def config(self) -> DisplayConfig:
        return self._config

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def ui_state(self) -> UIState:
        return self._ui_state

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    def props(self) -> ComboboxProps:
        return bind(self._ui_state, self._config)

    # --------------------------------------------------------------------------
    # Rendering callbacks
    # --------------------------------------------------------------------------

    def on_search_text_change(self, text: Optional[str]) -> UIState:
        return self._step(SearchTextChanged(text=text or ""))

    def on_menu_open_change(self, open: bool) -> UIState:
        return self._step(MenuOpenChanged(open=bool(open)))

    def on_option_activate(self, source_key: Optional[str] = None) -> UIState:
        return self._step(OptionActivated(source_key=source_key))

    def on_clear(self) -> UIState:
        return self._step(ClearRequested())

    # --------------------------------------------------------------------------
    # Feed notifications
    # --------------------------------------------------------------------------

    def update_options_feed(self, raw: Any) -> UIState:
        feed = normalize_options_feed(raw, self._session.options_feed)
        return self._step(OptionsFeedUpdated(feed=feed))

    def update_default_value_feed(self, raw: Any) -> UIState:
        feed = normalize_options_feed(raw, self._session.default_value_feed, defer_partial=True)
        return self._step(DefaultValueFeedUpdated(feed=feed))

    def update_label_feed(self, raw: Any) -> UIState:
        feed = normalize_label_feed(raw, self._session.label_feed)
        return self._step(LabelFeedUpdated(feed=feed))

    # --------------------------------------------------------------------------

    def _commit(self, event: SessionEvent, session: SessionState, ui_state: UIState, command: Any = None) -> None:
        self._session = session
        self._ui_state = ui_state
        if session.pending is None and self._dispatcher.in_flight is not None:
            self._dispatcher.confirm()
        if self._journal_path is not None:
            self._seq += 1
            append_session_event(
                self._journal_path,
                event,
                session_key=self._session_key,
                seq=self._seq,
                command=command,
            )

    def _step(self, event: SessionEvent) -> UIState:
        self.last_rejection = None
        if event.kind in USER_ACTION_KINDS and self._dispatcher.release_if_blocked():
            release = PendingReleased()
            released = reduce(self._session, release, self._config)
            if released.accepted:
                self._commit(release, released.session, released.ui_state)
                logger.debug("Pending command released before %s", event.kind)

        transition = reduce(self._session, event, self._config)
        if not transition.accepted:
            self.last_rejection = transition.rejected_reason
            return self._ui_state

        if transition.command is not None:
            outcome = self._dispatcher.dispatch(transition.command)
            if outcome != DispatchOutcome.DISPATCHED:
                # Disabled action: a no-op that leaves the UI exactly as it was.
                self.last_rejection = outcome.value
                return self._ui_state

        self._commit(event, transition.session, transition.ui_state, transition.command)
        return self._ui_state
