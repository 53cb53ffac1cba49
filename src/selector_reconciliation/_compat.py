# selector_reconciliation/_compat.py
from __future__ import annotations

from enum import Enum


class StrEnum(str, Enum):  # noqa: UP042
    """Python 3.10-compatible StrEnum."""

    pass
