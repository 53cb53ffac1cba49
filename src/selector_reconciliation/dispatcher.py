# selector_reconciliation/dispatcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from selector_reconciliation.adapters.action_handles import ActionHandle, LinkedValueHandle
from selector_reconciliation.contracts import (
    ClearCommand,
    Command,
    CommandKind,
    CreateCommand,
    SelectCommand,
    StrEnum,
)

logger = logging.getLogger(__name__)


class DispatchOutcome(StrEnum):
    DISPATCHED = "dispatched"
    NOT_EXECUTABLE = "not_executable"
    BUSY = "busy"


@dataclass(frozen=True)
class ActionHandles:
    """Capabilities injected by the platform. Any of them may be absent."""

    select: Optional[ActionHandle] = None
    create: Optional[ActionHandle] = None
    clear: Optional[ActionHandle] = None
    linked_label: Optional[LinkedValueHandle] = None
    linked_id: Optional[LinkedValueHandle] = None


class CommandDispatcher:
    """
    Fires commands at the platform's action handles, one at a time.

    A command stays in flight until `confirm()` is called (the label or
    default-value feed reported back) or its handle stops being executable.
    """

    def __init__(self, handles: ActionHandles) -> None:
        self._handles = handles
        self._in_flight: Optional[Command] = None
        self.invocations: int = 0

    @property
    def in_flight(self) -> Optional[Command]:
        return self._in_flight

    def handle_for(self, kind: str) -> Optional[ActionHandle]:
        if kind == CommandKind.SELECT:
            return self._handles.select
        if kind == CommandKind.CREATE:
            return self._handles.create
        if kind == CommandKind.CLEAR:
            return self._handles.clear
        return None

    def can_execute(self, kind: str) -> bool:
        handle = self.handle_for(kind)
        return handle is not None and bool(handle.executable)

    def pending_blocked(self) -> bool:
        """True when the in-flight command's handle reports it cannot execute."""
        return self._in_flight is not None and not self.can_execute(self._in_flight.kind)

    def release_if_blocked(self) -> bool:
        if not self.pending_blocked():
            return False
        logger.debug("Releasing %s command: handle no longer executable", self._in_flight.kind)
        self._in_flight = None
        return True

    def confirm(self) -> None:
        if self._in_flight is not None:
            logger.debug("%s command confirmed by feed", self._in_flight.kind)
        self._in_flight = None

    def _write_linked(self, *, label: Optional[str], source_id: Optional[str]) -> None:
        if self._handles.linked_id is not None:
            self._handles.linked_id.set_value(source_id)
        if self._handles.linked_label is not None:
            self._handles.linked_label.set_value(label)

    def dispatch(self, command: Command) -> DispatchOutcome:
        if self._in_flight is not None:
            logger.debug("Dropping %s command: %s still in flight", command.kind, self._in_flight.kind)
            return DispatchOutcome.BUSY

        handle = self.handle_for(command.kind)
        if handle is None or not handle.executable:
            logger.debug("Skipping %s command: action not executable", command.kind)
            return DispatchOutcome.NOT_EXECUTABLE

        if isinstance(command, SelectCommand):
            option = command.option
            self._write_linked(label=option.primary_label, source_id=option.source_key)
            arg: Optional[str] = option.source_key
        elif isinstance(command, CreateCommand):
            self._write_linked(label=command.raw_text, source_id=None)
            arg = command.raw_text
        elif isinstance(command, ClearCommand):
            self._write_linked(label=None, source_id=None)
            arg = None
        else:
            return DispatchOutcome.NOT_EXECUTABLE

        self._in_flight = command
        self.invocations += 1
        if arg is None:
            handle.invoke()
        else:
            handle.invoke(arg)
        return DispatchOutcome.DISPATCHED
