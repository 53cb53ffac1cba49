from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from selector_reconciliation.contracts import DisplayConfig
from selector_reconciliation.dispatcher import ActionHandles
from selector_reconciliation.session import SingleSelector


@dataclass
class RecordingAction:
    executable: bool = True
    calls: list[Any] = field(default_factory=list)

    def invoke(self, arg: Any = None) -> None:
        self.calls.append(arg)


@dataclass
class RecordingLinked:
    values: list[Any] = field(default_factory=list)

    def set_value(self, value: Any) -> None:
        self.values.append(value)


@dataclass
class PlatformHandles:
    select: RecordingAction = field(default_factory=RecordingAction)
    create: RecordingAction = field(default_factory=RecordingAction)
    clear: RecordingAction = field(default_factory=RecordingAction)
    linked_label: RecordingLinked = field(default_factory=RecordingLinked)
    linked_id: RecordingLinked = field(default_factory=RecordingLinked)

    def as_action_handles(self) -> ActionHandles:
        return ActionHandles(
            select=self.select,
            create=self.create,
            clear=self.clear,
            linked_label=self.linked_label,
            linked_id=self.linked_id,
        )


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    def _make_record(
        first: str | None = "label1",
        second: str | None = "secondLabel1",
        *,
        img: str | None = None,
        record_id: str | None = None,
        first_status: str = "available",
        second_status: str = "available",
        img_status: str = "available",
    ) -> dict[str, Any]:
        record: dict[str, Any] = {}
        if record_id is not None:
            record["id"] = record_id
        if first is not None or first_status != "available":
            record["firstLabel"] = {"status": first_status, "displayValue": first}
        if second is not None or second_status != "available":
            record["secondLabel"] = {"status": second_status, "displayValue": second}
        if img is not None or img_status != "available":
            record["imgUrl"] = {"status": img_status, "displayValue": img}
        return record

    return _make_record


@pytest.fixture
def sample_records(make_record: Callable[..., dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        make_record("label1", "secondLabel1", img="url1"),
        make_record("label2", "secondLabel2", img="url2"),
        make_record("label3", "secondLabel3", img="url3"),
    ]


@pytest.fixture
def options_feed(sample_records: list[dict[str, Any]]) -> dict[str, Any]:
    return {"status": "available", "items": sample_records}


@pytest.fixture
def default_value_feed(sample_records: list[dict[str, Any]]) -> dict[str, Any]:
    return {"status": "available", "items": sample_records[:1]}


@pytest.fixture
def make_config() -> Callable[..., DisplayConfig]:
    def _make_config(**overrides: Any) -> DisplayConfig:
        values: dict[str, Any] = {
            "enable_create": True,
            "enable_clear": True,
            "enable_search": True,
            "use_avatar": True,
            "use_default_style": True,
            "placeholder": "placeholder",
            "class_name": "custom-dropdown",
            "class_name_prefix": "test",
            "menu_height": 0,
        }
        values.update(overrides)
        return DisplayConfig(**values)

    return _make_config


@pytest.fixture
def config(make_config: Callable[..., DisplayConfig]) -> DisplayConfig:
    return make_config()


@pytest.fixture
def platform() -> PlatformHandles:
    return PlatformHandles()


@pytest.fixture
def make_selector(
    platform: PlatformHandles,
    make_config: Callable[..., DisplayConfig],
    options_feed: dict[str, Any],
    default_value_feed: dict[str, Any],
) -> Callable[..., SingleSelector]:
    def _make_selector(*, mount_feeds: bool = True, **config_overrides: Any) -> SingleSelector:
        selector = SingleSelector(make_config(**config_overrides), platform.as_action_handles())
        if mount_feeds:
            selector.update_options_feed(options_feed)
            selector.update_default_value_feed(default_value_feed)
            selector.update_label_feed({"status": "available", "value": None})
        return selector

    return _make_selector
