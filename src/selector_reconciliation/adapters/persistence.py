# selector_reconciliation/adapters/persistence.py
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel

from selector_reconciliation.contracts import (
    DisplayConfig,
    SessionEvent,
    SessionEventEnvelope,
    UIState,
)
from selector_reconciliation.engine import derive_ui_state, initial_session, replay
from selector_reconciliation.stable_ids import derive_journal_id

JsonObj = Dict[str, Any]
PathLike = Union[str, Path]


def _to_jsonable(x: Any) -> Any:
    if x is None:
        return None
    if isinstance(x, BaseModel):
        return x.model_dump(mode="json")
    if is_dataclass(x) and not isinstance(x, type):
        return asdict(x)
    if isinstance(x, dict):
        return {str(k): _to_jsonable(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_to_jsonable(v) for v in x]
    return x


def append_jsonl(path: PathLike, record: Any) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    obj = _to_jsonable(record)

    # enforce "one JSON object per line"
    line = json.dumps(obj, ensure_ascii=False)
    with p.open("a", encoding="utf-8") as f:
        f.write(line + "\n")


def read_jsonl(path: PathLike) -> Iterator[Tuple[JsonObj, JsonObj]]:
    """
    Yields (meta, obj) for each JSON object line.
    - meta includes line number and source path.
    - obj is the parsed dict.
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            s = line.strip()
            if not s:
                continue
            obj = json.loads(s)
            if not isinstance(obj, dict):
                raise ValueError(f"Expected JSON object on line {lineno}, got {type(obj).__name__}")
            meta: JsonObj = {"path": str(p), "lineno": lineno}
            yield meta, obj


def append_session_event(
    path: PathLike,
    event: SessionEvent,
    *,
    session_key: str,
    seq: int,
    command: Optional[BaseModel] = None,
) -> JsonObj:
    """Journal one committed event; returns the reference written."""
    record: JsonObj = {
        "event_id": derive_journal_id(session_key, seq),
        "session_key": session_key,
        "seq": seq,
        "event": _to_jsonable(event),
        "command": _to_jsonable(command),
    }
    append_jsonl(path, record)
    return {"kind": "jsonl", "ref": f"{Path(path).name}@{seq}", "event_id": record["event_id"]}


def load_session_events(path: PathLike) -> List[SessionEvent]:
    events: List[SessionEvent] = []
    for _, obj in read_jsonl(path):
        envelope = SessionEventEnvelope.model_validate({"event": obj.get("event")})
        events.append(envelope.event)
    return events


def replay_session(path: PathLike, config: DisplayConfig) -> UIState:
    """Re-run a journal through the reducer; an absent journal replays to the initial state."""
    p = Path(path)
    if not p.exists():
        return derive_ui_state(initial_session(), config)
    transitions = replay(load_session_events(p), config)
    if not transitions:
        return derive_ui_state(initial_session(), config)
    return transitions[-1].ui_state
