# selector_reconciliation/stable_ids.py
from __future__ import annotations

import hashlib
import json
from typing import Any, Optional


def _sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _canon(obj: Any) -> str:
    """
    Canonical JSON string (stable across runs) for hashing.
    """
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def derive_source_key(
    primary_label: str,
    secondary_label: str = "",
    image_url: Optional[str] = None,
) -> str:
    """
    Deterministic identity for a record the platform supplied without an id.
    Records with identical display fields collapse to the same entity.
    """
    key_obj = {
        "first_label": primary_label,
        "second_label": secondary_label,
        "img_url": image_url,
    }
    return "opt_" + _sha256_hex(_canon(key_obj))


def derive_journal_id(session_key: str, seq: int) -> str:
    return "evt_" + _sha256_hex(_canon({"session": session_key, "seq": seq}))[:16]
