from __future__ import annotations

from collections.abc import Callable

from selector_reconciliation.contracts import CreateOffer, DisplayConfig, ImageRef, MachineState, Option, UIState
from selector_reconciliation.presentation import bind

APPLE = Option(primary_label="apple", secondary_label="fruit", image=ImageRef(url="a.png"), source_key="a")
BANANA = Option(primary_label="Banana", secondary_label="fruit", source_key="b")


def _ui(**overrides: object) -> UIState:
    values: dict[str, object] = {
        "visible_options": (APPLE, BANANA),
        "selection": None,
        "menu_open": True,
        "machine_state": MachineState.READY,
    }
    values.update(overrides)
    return UIState(**values)


def test_menu_entries_only_when_open(config: DisplayConfig) -> None:
    assert bind(_ui(menu_open=False), config).menu_entries == ()
    assert [e.key for e in bind(_ui(), config).menu_entries] == ["a", "b"]


def test_avatar_falls_back_to_glyph_without_image(config: DisplayConfig) -> None:
    entries = bind(_ui(), config).menu_entries

    assert entries[0].avatar is not None and entries[0].avatar.style == "background-image: url(a.png)"
    assert entries[1].avatar is not None and entries[1].avatar.glyph == "B"
    assert entries[1].avatar.class_name == "test__avatar"


def test_avatars_omitted_when_disabled(make_config: Callable[..., DisplayConfig]) -> None:
    entries = bind(_ui(), make_config(use_avatar=False)).menu_entries

    assert all(entry.avatar is None for entry in entries)


def test_create_entry_is_appended_after_matches(config: DisplayConfig) -> None:
    props = bind(
        _ui(visible_options=(BANANA,), offer_create=CreateOffer(raw_text="Ban"), machine_state=MachineState.OFFERING_CREATE),
        config,
    )

    assert [e.text for e in props.menu_entries] == ["Bananafruit", 'Create "Ban"']
    assert props.menu_entries[-1].is_create is True


def test_placeholder_and_clear_indicator_follow_selection(config: DisplayConfig) -> None:
    empty = bind(_ui(), config)
    chosen = bind(_ui(selection=BANANA), config)

    assert empty.placeholder == "placeholder"
    assert empty.is_clearable is False
    assert chosen.placeholder is None
    assert chosen.value is not None and chosen.value.names == ("Banana", "fruit")
    assert chosen.is_clearable is True
    assert "test__clear-indicator" in chosen.indicators
    assert [e.is_selected for e in chosen.menu_entries] == [False, True]


def test_container_class_and_menu_height(make_config: Callable[..., DisplayConfig]) -> None:
    styled = bind(_ui(), make_config(menu_height=0))
    plain = bind(_ui(), make_config(use_default_style=False, menu_height=240))

    assert styled.container_class == "custom-dropdown custom-dropdown--default-style"
    assert styled.menu_max_height is None
    assert plain.container_class == "custom-dropdown"
    assert plain.menu_max_height == 240


def test_display_config_from_platform_mapping() -> None:
    config = DisplayConfig.from_mapping(
        {"enableCreate": True, "classNamePrefix": " test ", "menuHeight": 120, "unknownKey": 1, "placeholder": None}
    )

    assert config.enable_create is True
    assert config.class_name_prefix == "test"
    assert config.menu_height == 120
    assert config.placeholder == ""


def test_name_and_placeholder_parts_carry_prefixed_class_names(config: DisplayConfig) -> None:
    props = bind(_ui(), config)

    assert [entry.name_class for entry in props.menu_entries] == ["test__name", "test__name"]
    assert props.placeholder_class == "test__placeholder"
