"""
SingleSelect distribution import namespace.

Re-exports the public surface of the `selector_reconciliation` core so
callers can depend on one stable import path.
"""

from importlib.metadata import PackageNotFoundError, version

from selector_reconciliation.adapters.action_handles import ActionHandle, CallbackAction, LinkedValueHandle, RecordingValue
from selector_reconciliation.contracts import (
    CREATE_OPTION_KEY,
    ClearCommand,
    CreateCommand,
    CreateOffer,
    DisplayConfig,
    FeedState,
    FeedStatus,
    ImageRef,
    MachineState,
    Option,
    RecordMarker,
    SelectCommand,
    SessionState,
    UIState,
)
from selector_reconciliation.dispatcher import ActionHandles, CommandDispatcher, DispatchOutcome
from selector_reconciliation.engine import derive_ui_state, filter_options, reduce, replay
from selector_reconciliation.feeds import normalize_label_feed, normalize_options_feed
from selector_reconciliation.options import from_option, to_option
from selector_reconciliation.presentation import ComboboxProps, bind
from selector_reconciliation.session import SingleSelector

try:
    __version__ = version("singleselect")
except PackageNotFoundError:  # pragma: no cover - source checkout without install
    __version__ = "0+unknown"

__all__ = [
    "CREATE_OPTION_KEY",
    "ActionHandle",
    "ActionHandles",
    "CallbackAction",
    "ClearCommand",
    "ComboboxProps",
    "CommandDispatcher",
    "CreateCommand",
    "CreateOffer",
    "DisplayConfig",
    "DispatchOutcome",
    "FeedState",
    "FeedStatus",
    "ImageRef",
    "LinkedValueHandle",
    "MachineState",
    "Option",
    "RecordMarker",
    "RecordingValue",
    "SelectCommand",
    "SessionState",
    "SingleSelector",
    "UIState",
    "__version__",
    "bind",
    "derive_ui_state",
    "filter_options",
    "from_option",
    "normalize_label_feed",
    "normalize_options_feed",
    "reduce",
    "replay",
    "to_option",
]
