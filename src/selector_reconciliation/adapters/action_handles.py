from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol


class ActionHandle(Protocol):
    """Platform command the widget may invoke (select/create/clear)."""

    @property
    def executable(self) -> bool:
        """False while the platform has the action disabled."""
        ...

    def invoke(self, arg: Any = None) -> None:
        """Fire the action. The widget does not await or retry it."""
        ...


class LinkedValueHandle(Protocol):
    """Settable platform attribute the widget writes confirmed values into."""

    def set_value(self, value: Optional[str]) -> None:
        ...


@dataclass
class CallbackAction:
    """ActionHandle over a plain callable, with a toggle for executability."""

    callback: Callable[..., Any]
    executable: bool = True
    takes_argument: bool = True

    def invoke(self, arg: Any = None) -> None:
        if self.takes_argument:
            self.callback(arg)
        else:
            self.callback()


@dataclass
class RecordingValue:
    """LinkedValueHandle that keeps every value written to it."""

    value: Optional[str] = None
    history: list[Optional[str]] = field(default_factory=list)

    def set_value(self, value: Optional[str]) -> None:
        self.value = value
        self.history.append(value)
