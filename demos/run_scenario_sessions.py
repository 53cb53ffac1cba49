from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from pydantic import BaseModel, Field

from selector_reconciliation.demo_runner import load_scenario_packs, run_scenario


class ScenarioSessionArtifact(BaseModel):
    """Summary of one replayed selector scenario."""

    scenario: str
    source: str
    final_state: str
    final_selection: str | None = None
    invocations: dict[str, int] = Field(default_factory=dict)
    rejected_steps: list[int] = Field(default_factory=list)


class ScenarioSessionBatch(BaseModel):
    generated_at_iso: str
    sessions: list[ScenarioSessionArtifact] = Field(default_factory=list)
    steps: dict[str, list[dict]] = Field(default_factory=dict)


def write_scenario_session_batch(*, output_path: str | Path, batch: ScenarioSessionBatch) -> Path:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(batch.model_dump(mode="json"), indent=2) + "\n", encoding="utf-8")
    return out


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay selector scenario packs and persist a JSON summary.")
    parser.add_argument("--packs", default=str(Path(__file__).parent / "scenarios"), help="Directory of *.json packs.")
    parser.add_argument("--output", required=True, help="Path to write the summary JSON artifact.")
    parser.add_argument(
        "--generated-at-iso",
        default="1970-01-01T00:00:00+00:00",
        help="Deterministic timestamp embedded in the persisted batch artifact.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every transition at DEBUG level.")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(name)s: %(message)s")

    batch = ScenarioSessionBatch(generated_at_iso=args.generated_at_iso)
    for pack in load_scenario_packs(Path(args.packs)):
        execution = run_scenario(pack)
        last = execution.steps[-1] if execution.steps else None
        batch.sessions.append(
            ScenarioSessionArtifact(
                scenario=execution.scenario,
                source=pack["_source"],
                final_state=last.machine_state if last else "loading",
                final_selection=last.selection if last else None,
                invocations={name: len(calls) for name, calls in execution.invocations.items()},
                rejected_steps=[step.step_index for step in execution.steps if step.rejected],
            )
        )
        batch.steps[execution.scenario] = [asdict(step) for step in execution.steps]
    write_scenario_session_batch(output_path=args.output, batch=batch)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
