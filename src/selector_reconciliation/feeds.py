# selector_reconciliation/feeds.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from selector_reconciliation.contracts import FeedState, FeedStatus, LabelFeed, Option, OptionsFeed
from selector_reconciliation.options import materialize_options, partition_records

logger = logging.getLogger(__name__)

# Keys the platform uses for a feed's payload, by feed shape.
_LIST_PAYLOAD_KEYS = ("items", "value")
_SCALAR_PAYLOAD_KEYS = ("value", "display_value", "displayValue")


def _coerce_status(raw: Any) -> FeedStatus:
    if isinstance(raw, FeedStatus):
        return raw
    try:
        return FeedStatus(str(raw).strip().lower())
    except ValueError:
        return FeedStatus.UNAVAILABLE


def _split(raw: Any, payload_keys: tuple[str, ...]) -> tuple[FeedStatus, Any]:
    if raw is None:
        return FeedStatus.UNAVAILABLE, None
    if isinstance(raw, FeedState):
        return raw.status, raw.value
    if not isinstance(raw, Mapping):
        return FeedStatus.UNAVAILABLE, None
    payload = None
    for key in payload_keys:
        if key in raw:
            payload = raw[key]
            break
    return _coerce_status(raw.get("status")), payload


def _retained(previous: Optional[FeedState[Any]]) -> Any:
    if previous is None:
        return None
    return previous.value


def _still_loading(previous: Optional[OptionsFeed]) -> OptionsFeed:
    kept = _retained(previous)
    return OptionsFeed(status=FeedStatus.LOADING, value=kept, stale=kept is not None)


def normalize_options_feed(
    raw: Any,
    previous: Optional[OptionsFeed] = None,
    *,
    defer_partial: bool = False,
) -> OptionsFeed:
    """
    Map a list-shaped platform feed (options or default value) to a FeedState.

    available -> the whole materialized list replaces the previous one;
    loading -> previous value retained and marked stale;
    unavailable or no payload -> unavailable, empty.

    With ``defer_partial`` an available list holding a record whose labels
    are still loading is treated as loading, so a selection never drops to
    empty while its record resolves.
    """
    if isinstance(raw, OptionsFeed):
        return raw
    status, payload = _split(raw, _LIST_PAYLOAD_KEYS)
    if status == FeedStatus.LOADING:
        return _still_loading(previous)
    if status != FeedStatus.AVAILABLE or payload is None:
        return OptionsFeed.unavailable()
    if isinstance(payload, (str, bytes, Mapping)) or not isinstance(payload, Iterable):
        return OptionsFeed.unavailable()
    items = tuple(payload)
    if all(isinstance(item, Option) for item in items):
        return OptionsFeed(status=FeedStatus.AVAILABLE, value=items)
    if not defer_partial:
        return OptionsFeed(status=FeedStatus.AVAILABLE, value=materialize_options(items))
    options, deferred = partition_records(items)
    if deferred:
        logger.debug("Holding previous value: %d record(s) still loading", deferred)
        return _still_loading(previous)
    return OptionsFeed(status=FeedStatus.AVAILABLE, value=options)


def normalize_label_feed(raw: Any, previous: Optional[LabelFeed] = None) -> LabelFeed:
    """
    Scalar variant for the linked-label feed. An available feed with an
    empty or null label is still available: it confirms "no selection".
    """
    if isinstance(raw, LabelFeed):
        return raw
    status, payload = _split(raw, _SCALAR_PAYLOAD_KEYS)
    if status == FeedStatus.LOADING:
        kept = _retained(previous)
        return LabelFeed(status=FeedStatus.LOADING, value=kept, stale=kept is not None)
    if status != FeedStatus.AVAILABLE:
        return LabelFeed.unavailable()
    if payload is None:
        return LabelFeed(status=FeedStatus.AVAILABLE, value=None)
    return LabelFeed(status=FeedStatus.AVAILABLE, value=str(payload))
