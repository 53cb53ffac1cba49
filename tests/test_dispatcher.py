from __future__ import annotations

from conftest import PlatformHandles

from selector_reconciliation.contracts import ClearCommand, CreateCommand, Option, SelectCommand
from selector_reconciliation.dispatcher import ActionHandles, CommandDispatcher, DispatchOutcome

APPLE = Option(primary_label="Apple", secondary_label="fruit", source_key="obj-apple")


def test_select_writes_linked_values_then_invokes(platform: PlatformHandles) -> None:
    dispatcher = CommandDispatcher(platform.as_action_handles())

    outcome = dispatcher.dispatch(SelectCommand(option=APPLE))

    assert outcome is DispatchOutcome.DISPATCHED
    assert platform.select.calls == ["obj-apple"]
    assert platform.linked_id.values == ["obj-apple"]
    assert platform.linked_label.values == ["Apple"]
    assert dispatcher.in_flight == SelectCommand(option=APPLE)


def test_create_and_clear_write_back(platform: PlatformHandles) -> None:
    dispatcher = CommandDispatcher(platform.as_action_handles())

    dispatcher.dispatch(CreateCommand(raw_text="Kiwi"))
    dispatcher.confirm()
    dispatcher.dispatch(ClearCommand())

    assert platform.create.calls == ["Kiwi"]
    assert platform.clear.calls == [None]
    assert platform.linked_label.values == ["Kiwi", None]
    assert platform.linked_id.values == [None, None]


def test_second_command_is_dropped_while_first_in_flight(platform: PlatformHandles) -> None:
    dispatcher = CommandDispatcher(platform.as_action_handles())

    first = dispatcher.dispatch(SelectCommand(option=APPLE))
    second = dispatcher.dispatch(CreateCommand(raw_text="Kiwi"))

    assert (first, second) == (DispatchOutcome.DISPATCHED, DispatchOutcome.BUSY)
    assert platform.select.calls == ["obj-apple"]
    assert platform.create.calls == []
    assert dispatcher.invocations == 1


def test_non_executable_handle_is_a_silent_no_op(platform: PlatformHandles) -> None:
    platform.select.executable = False
    dispatcher = CommandDispatcher(platform.as_action_handles())

    outcome = dispatcher.dispatch(SelectCommand(option=APPLE))

    assert outcome is DispatchOutcome.NOT_EXECUTABLE
    assert platform.select.calls == []
    assert platform.linked_label.values == []
    assert dispatcher.in_flight is None


def test_missing_handle_is_not_executable() -> None:
    dispatcher = CommandDispatcher(ActionHandles())

    assert dispatcher.dispatch(ClearCommand()) is DispatchOutcome.NOT_EXECUTABLE
    assert dispatcher.can_execute("clear") is False


def test_in_flight_released_when_handle_becomes_non_executable(platform: PlatformHandles) -> None:
    dispatcher = CommandDispatcher(platform.as_action_handles())
    dispatcher.dispatch(SelectCommand(option=APPLE))

    assert dispatcher.release_if_blocked() is False
    platform.select.executable = False
    assert dispatcher.pending_blocked() is True
    assert dispatcher.release_if_blocked() is True
    assert dispatcher.in_flight is None
