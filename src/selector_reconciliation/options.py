# selector_reconciliation/options.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from selector_reconciliation.contracts import (
    FeedStatus,
    ImageRef,
    Option,
    RawField,
    RawRecord,
    RecordMarker,
    RecordValidationError,
)
from selector_reconciliation.stable_ids import derive_source_key

logger = logging.getLogger(__name__)


def parse_record(raw: RawRecord | Mapping[str, Any] | BaseModel) -> RawRecord:
    """Strictly coerce a platform record; raises RecordValidationError."""
    if isinstance(raw, RawRecord):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        raise RecordValidationError(f"Expected a mapping record, got {type(raw).__name__}")
    try:
        return RawRecord.model_validate(dict(raw))
    except ValidationError as exc:
        raise RecordValidationError(str(exc)) from exc


def _field_loading(field: Optional[RawField]) -> bool:
    return field is not None and field.status == FeedStatus.LOADING


def _field_text(field: Optional[RawField]) -> Optional[str]:
    if field is None or field.status != FeedStatus.AVAILABLE:
        return None
    return field.display_value


def _image_ref(field: Optional[RawField]) -> Optional[ImageRef]:
    # A missing or loading image never blocks the option; it renders a placeholder.
    url = _field_text(field)
    if not url or not url.strip():
        return None
    return ImageRef(url=url.strip())


def to_option(raw: RawRecord | Mapping[str, Any] | BaseModel) -> Option | RecordMarker:
    try:
        record = parse_record(raw)
    except RecordValidationError as exc:
        logger.warning("Excluding malformed record: %s", exc)
        return RecordMarker.MALFORMED

    if _field_loading(record.first_label) or _field_loading(record.second_label):
        return RecordMarker.LOADING

    primary = _field_text(record.first_label)
    secondary = _field_text(record.second_label)
    if primary is None or secondary is None:
        logger.warning("Excluding record without display labels: source_key=%s", record.source_key)
        return RecordMarker.MALFORMED

    image = _image_ref(record.img_url)
    source_key = record.source_key or derive_source_key(primary, secondary, image.url if image else None)
    return Option(
        primary_label=primary,
        secondary_label=secondary,
        image=image,
        source_key=source_key,
    )


def from_option(option: Option) -> dict[str, Any]:
    """Inverse of `to_option` for an available record."""
    out: dict[str, Any] = {
        "source_key": option.source_key,
        "first_label": {"status": FeedStatus.AVAILABLE.value, "display_value": option.primary_label},
        "second_label": {"status": FeedStatus.AVAILABLE.value, "display_value": option.secondary_label},
    }
    if option.image is not None:
        out["img_url"] = {"status": FeedStatus.AVAILABLE.value, "display_value": option.image.url}
    return out


def partition_records(records: Iterable[Any]) -> tuple[tuple[Option, ...], int]:
    """Renderable options in source order, plus how many records still have loading labels."""
    options: list[Option] = []
    deferred = 0
    for raw in records:
        result = to_option(raw)
        if isinstance(result, Option):
            options.append(result)
        elif result is RecordMarker.LOADING:
            deferred += 1
    return tuple(options), deferred


def materialize_options(records: Iterable[Any]) -> tuple[Option, ...]:
    """Renderable options in source order; loading and malformed records are skipped."""
    options, deferred = partition_records(records)
    if deferred:
        logger.debug("Deferred %d record(s) with loading labels", deferred)
    return options


def synthetic_option(label: str) -> Option:
    """Option for a label that exists only in the linked-label feed."""
    return Option(primary_label=label, secondary_label="", image=None, source_key=derive_source_key(label))
