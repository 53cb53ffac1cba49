# selector_reconciliation/presentation.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from selector_reconciliation.contracts import CREATE_OPTION_KEY, DisplayConfig, Option, UIState

_PROPS_CONFIG = ConfigDict(extra="forbid", frozen=True)

OPTION = "option"
AVATAR = "avatar"
NAME = "name"
PLACEHOLDER = "placeholder"
LOADING_INDICATOR = "loading-indicator"
CLEAR_INDICATOR = "clear-indicator"
DROPDOWN_INDICATOR = "dropdown-indicator"


def part_class(config: DisplayConfig, part: str) -> str:
    return f"{config.class_name_prefix}__{part}"


class AvatarProps(BaseModel):
    model_config = _PROPS_CONFIG
    class_name: str
    style: Optional[str] = None
    glyph: Optional[str] = None


class MenuEntry(BaseModel):
    model_config = _PROPS_CONFIG
    key: str
    class_name: str
    text: str
    names: tuple[str, ...] = ()
    name_class: Optional[str] = None
    avatar: Optional[AvatarProps] = None
    is_create: bool = False
    is_selected: bool = False


class ComboboxProps(BaseModel):
    """Everything a generic combobox primitive needs for one render."""

    model_config = _PROPS_CONFIG

    container_class: str
    class_name_prefix: str
    input_value: str
    placeholder: Optional[str] = None
    placeholder_class: str = ""
    value: Optional[MenuEntry] = None
    menu_open: bool = False
    menu_entries: tuple[MenuEntry, ...] = ()
    menu_max_height: Optional[int] = None
    is_loading: bool = False
    is_clearable: bool = False
    is_searchable: bool = True
    indicators: tuple[str, ...] = ()


def _avatar(option: Option, config: DisplayConfig) -> Optional[AvatarProps]:
    if not config.use_avatar:
        return None
    cls = part_class(config, AVATAR)
    if option.image is not None:
        return AvatarProps(class_name=cls, style=f"background-image: url({option.image.url})")
    label = option.primary_label.strip()
    return AvatarProps(class_name=cls, glyph=label[:1].upper() or "?")


def _entry(option: Option, config: DisplayConfig, selection: Optional[Option]) -> MenuEntry:
    names = (option.primary_label, option.secondary_label)
    return MenuEntry(
        key=option.source_key,
        class_name=part_class(config, OPTION),
        text="".join(names),
        names=names,
        name_class=part_class(config, NAME),
        avatar=_avatar(option, config),
        is_selected=option.same_entity(selection),
    )


def bind(ui_state: UIState, config: DisplayConfig) -> ComboboxProps:
    selection = ui_state.selection

    entries: list[MenuEntry] = []
    if ui_state.menu_open:
        entries = [_entry(opt, config, selection) for opt in ui_state.visible_options]
        if ui_state.offer_create is not None:
            entries.append(
                MenuEntry(
                    key=CREATE_OPTION_KEY,
                    class_name=part_class(config, OPTION),
                    text=ui_state.offer_create.label,
                    is_create=True,
                )
            )

    container = config.class_name
    if config.use_default_style:
        container = f"{container} {config.class_name}--default-style"

    is_clearable = config.enable_clear and selection is not None
    indicators = [DROPDOWN_INDICATOR]
    if ui_state.loading_indicator:
        indicators.insert(0, LOADING_INDICATOR)
    if is_clearable:
        indicators.insert(0, CLEAR_INDICATOR)

    return ComboboxProps(
        container_class=container,
        class_name_prefix=config.class_name_prefix,
        input_value=ui_state.search_text,
        placeholder=config.placeholder if selection is None else None,
        placeholder_class=part_class(config, PLACEHOLDER),
        value=_entry(selection, config, selection) if selection is not None else None,
        menu_open=ui_state.menu_open,
        menu_entries=tuple(entries),
        menu_max_height=config.menu_height or None,
        is_loading=ui_state.loading_indicator,
        is_clearable=is_clearable,
        is_searchable=config.enable_search,
        indicators=tuple(part_class(config, name) for name in indicators),
    )
