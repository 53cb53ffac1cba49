# selector_reconciliation/contracts.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from typing_extensions import Self

from selector_reconciliation._compat import StrEnum

T = TypeVar("T")

CREATE_OPTION_KEY = "__create__"


class RecordValidationError(ValueError):
    """Raised when a raw platform record cannot be parsed into display fields."""


# ------------------------------------------------------------------------------
# Shared BaseModel config helpers
# ------------------------------------------------------------------------------

_CONTRACT_CONFIG = ConfigDict(
    extra="forbid",
    validate_assignment=True,
    use_enum_values=False,  # keep enums as enums in Python
)

_IMMUTABLE_CONTRACT_CONFIG = ConfigDict(
    extra="forbid",
    use_enum_values=False,
    frozen=True,
)

# Raw platform payloads carry extra keys we do not model.
_RAW_CONFIG = ConfigDict(
    extra="ignore",
    frozen=True,
    populate_by_name=True,
)

# ------------------------------------------------------------------------------
# Feeds
# ------------------------------------------------------------------------------


class FeedStatus(StrEnum):
    UNAVAILABLE = "unavailable"
    LOADING = "loading"
    AVAILABLE = "available"


class FeedState(BaseModel, Generic[T]):
    """
    Normalized view of one external feed.

    While LOADING, `value` holds the last available payload (if any) and
    `stale` is set, so a refresh never flashes to empty.
    """

    model_config = _IMMUTABLE_CONTRACT_CONFIG

    status: FeedStatus = FeedStatus.UNAVAILABLE
    value: T | None = None
    stale: bool = False

    @property
    def is_available(self) -> bool:
        return self.status == FeedStatus.AVAILABLE

    @property
    def is_loading(self) -> bool:
        return self.status == FeedStatus.LOADING

    @classmethod
    def unavailable(cls) -> Self:
        return cls(status=FeedStatus.UNAVAILABLE)


# ------------------------------------------------------------------------------
# Raw records / options
# ------------------------------------------------------------------------------


class RawField(BaseModel):
    """One display field of a platform record, possibly still loading."""

    model_config = _RAW_CONFIG

    status: FeedStatus = FeedStatus.AVAILABLE
    display_value: str | None = Field(
        default=None, validation_alias=AliasChoices("display_value", "displayValue", "value")
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="before")
    @classmethod
    def _wrap_plain_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"status": FeedStatus.AVAILABLE, "display_value": value}
        return value


class RawRecord(BaseModel):
    model_config = _RAW_CONFIG

    source_key: str | None = Field(default=None, validation_alias=AliasChoices("source_key", "id", "guid"))
    first_label: RawField | None = Field(
        default=None, validation_alias=AliasChoices("first_label", "firstLabel", "primary_label")
    )
    second_label: RawField | None = Field(
        default=None, validation_alias=AliasChoices("second_label", "secondLabel", "secondary_label")
    )
    img_url: RawField | None = Field(default=None, validation_alias=AliasChoices("img_url", "imgUrl", "image"))

    @field_validator("source_key", mode="before")
    @classmethod
    def _stringify_key(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class ImageRef(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    url: str


class Option(BaseModel):
    """One selectable entity. Identity is `source_key` only."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG

    primary_label: str
    secondary_label: str = ""
    image: ImageRef | None = None
    source_key: str

    def same_entity(self, other: Option | None) -> bool:
        return other is not None and other.source_key == self.source_key


class RecordMarker(StrEnum):
    LOADING = "loading"
    MALFORMED = "malformed"


OptionsFeed = FeedState[tuple[Option, ...]]
LabelFeed = FeedState[str]


# ------------------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------------------

_CONFIG_KEY_ALIASES = {
    "enableCreate": "enable_create",
    "enableClear": "enable_clear",
    "enableSearch": "enable_search",
    "useAvatar": "use_avatar",
    "useDefaultStyle": "use_default_style",
    "className": "class_name",
    "classNamePrefix": "class_name_prefix",
    "menuHeight": "menu_height",
}


class DisplayConfig(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG

    enable_create: bool = False
    enable_clear: bool = False
    enable_search: bool = True
    use_avatar: bool = False
    use_default_style: bool = True
    placeholder: str = ""
    class_name: str = "single-selector"
    class_name_prefix: str = "single-selector"
    menu_height: int = Field(default=0, ge=0)

    @field_validator("class_name", "class_name_prefix", mode="before")
    @classmethod
    def _strip_class(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> DisplayConfig:
        known = set(cls.model_fields)
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _CONFIG_KEY_ALIASES.get(key, key)
            if name in known and value is not None:
                values[name] = value
        return cls(**values)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------


class CommandKind(StrEnum):
    SELECT = "select"
    CREATE = "create"
    CLEAR = "clear"


class SelectCommand(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["select"] = "select"
    option: Option


class CreateCommand(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["create"] = "create"
    raw_text: str

    @field_validator("raw_text")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("raw_text must not be blank")
        return value


class ClearCommand(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["clear"] = "clear"


Command = Annotated[Union[SelectCommand, CreateCommand, ClearCommand], Field(discriminator="kind")]


class PendingCommand(BaseModel):
    """A dispatched command awaiting confirmation from the label/default feeds."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG
    command: Command
    optimistic_selection: Option | None = None


# ------------------------------------------------------------------------------
# UI state
# ------------------------------------------------------------------------------


class MachineState(StrEnum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"
    SEARCHING = "searching"
    OFFERING_CREATE = "offering_create"


class CreateOffer(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    raw_text: str

    @property
    def label(self) -> str:
        return f'Create "{self.raw_text}"'


class UIState(BaseModel):
    """Derived render state. Recomputed from a SessionState, never mutated."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG

    visible_options: tuple[Option, ...] = ()
    selection: Option | None = None
    menu_open: bool = False
    offer_create: CreateOffer | None = None
    loading_indicator: bool = False
    machine_state: MachineState = MachineState.LOADING
    search_text: str = ""


# ------------------------------------------------------------------------------
# Events
# ------------------------------------------------------------------------------


class EventKind(StrEnum):
    SEARCH_TEXT_CHANGED = "search_text_changed"
    MENU_OPEN_CHANGED = "menu_open_changed"
    OPTION_ACTIVATED = "option_activated"
    CLEAR_REQUESTED = "clear_requested"
    OPTIONS_FEED_UPDATED = "options_feed_updated"
    DEFAULT_VALUE_FEED_UPDATED = "default_value_feed_updated"
    LABEL_FEED_UPDATED = "label_feed_updated"
    PENDING_RELEASED = "pending_released"


class SearchTextChanged(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["search_text_changed"] = "search_text_changed"
    text: str = ""


class MenuOpenChanged(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["menu_open_changed"] = "menu_open_changed"
    open: bool


class OptionActivated(BaseModel):
    """Enter/click on a menu entry. `source_key=None` activates the focused (first) entry."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["option_activated"] = "option_activated"
    source_key: str | None = None


class ClearRequested(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["clear_requested"] = "clear_requested"


class OptionsFeedUpdated(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["options_feed_updated"] = "options_feed_updated"
    feed: OptionsFeed


class DefaultValueFeedUpdated(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["default_value_feed_updated"] = "default_value_feed_updated"
    feed: OptionsFeed


class LabelFeedUpdated(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["label_feed_updated"] = "label_feed_updated"
    feed: LabelFeed


class PendingReleased(BaseModel):
    """The pending command's handle reported itself non-executable."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG
    kind: Literal["pending_released"] = "pending_released"


SessionEvent = Annotated[
    Union[
        SearchTextChanged,
        MenuOpenChanged,
        OptionActivated,
        ClearRequested,
        OptionsFeedUpdated,
        DefaultValueFeedUpdated,
        LabelFeedUpdated,
        PendingReleased,
    ],
    Field(discriminator="kind"),
]

USER_ACTION_KINDS = frozenset({EventKind.OPTION_ACTIVATED.value, EventKind.CLEAR_REQUESTED.value})


class SessionEventEnvelope(BaseModel):
    """Wrapper used to (de)serialize one event of a journal or scenario pack."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG
    event: SessionEvent


# ------------------------------------------------------------------------------
# Session
# ------------------------------------------------------------------------------


class SessionState(BaseModel):
    """Everything the reducer owns. Replaced wholesale on each transition."""

    model_config = _IMMUTABLE_CONTRACT_CONFIG

    options_feed: OptionsFeed = Field(default_factory=OptionsFeed.unavailable)
    default_value_feed: OptionsFeed = Field(default_factory=OptionsFeed.unavailable)
    label_feed: LabelFeed = Field(default_factory=LabelFeed.unavailable)
    options_seen: bool = False
    default_value_seen: bool = False
    search_text: str = ""
    menu_open: bool = False
    pending: PendingCommand | None = None
    has_confirmed: bool = False
    confirmed_selection: Option | None = None

    @property
    def gated_open(self) -> bool:
        return self.options_seen and self.default_value_seen


class Transition(BaseModel):
    model_config = _IMMUTABLE_CONTRACT_CONFIG

    session: SessionState
    ui_state: UIState
    command: Optional[Command] = None
    rejected_reason: str | None = None

    @property
    def accepted(self) -> bool:
        return self.rejected_reason is None
