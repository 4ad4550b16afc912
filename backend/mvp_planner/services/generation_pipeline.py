"""Generation orchestrator: runs all five artifacts and saves the plan.

Ordering:
  1. plan. If it fails nothing else runs.
  2. features, milestones, kpis concurrently.
  3. diagrams after kpis succeed, fed with the generated feature ideas.
  4. once all five are complete, ``save_plan`` persists one MvpPlan.

Progress is 20 points per complete artifact and 10 per artifact in flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from ..agents.mvp_agent.generator import GENERATORS, Generator
from ..agents.mvp_agent.graph import create_generation_graph
from ..agents.mvp_agent.schema import PlanOutput
from ..constants import ARTIFACTS
from ..schemas.generation_schema import GenerationRequest, GenerationResult, GenerationRunResponse
from ..schemas.mvp_plan_schema import MvpPlanCreate

logger = logging.getLogger(__name__)

SavePlan = Callable[[GenerationRequest, Dict[str, GenerationResult]], Optional[str]]


class GenerationStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class GenerationProgress:
    steps: Dict[str, GenerationStatus] = field(
        default_factory=lambda: {a: GenerationStatus.IDLE for a in ARTIFACTS}
    )

    def start(self, artifact: str) -> None:
        self.steps[artifact] = GenerationStatus.LOADING
        print(f"⏳ [PIPELINE] {artifact} started ({self.percent}%)")

    def finish(self, artifact: str, ok: bool) -> None:
        self.steps[artifact] = GenerationStatus.COMPLETE if ok else GenerationStatus.ERROR
        print(f"📈 [PIPELINE] {artifact} {self.steps[artifact].value} ({self.percent}%)")

    @property
    def percent(self) -> int:
        complete = sum(1 for s in self.steps.values() if s == GenerationStatus.COMPLETE)
        loading = sum(1 for s in self.steps.values() if s == GenerationStatus.LOADING)
        return 20 * complete + 10 * loading

    @property
    def all_complete(self) -> bool:
        return all(s == GenerationStatus.COMPLETE for s in self.steps.values())


def build_plan_record(
    request: GenerationRequest,
    results: Dict[str, GenerationResult],
    project_id: Optional[str] = None,
) -> MvpPlanCreate:
    """Consolidate the five artifacts into the saved plan snapshot."""
    plan = PlanOutput.model_validate(results["plan"].data or {})
    return MvpPlanCreate(
        project_id=project_id,
        name=request.project_name,
        industry=request.industry,
        audience=request.target_audience or plan.target_audience,
        problem_statement=plan.problem_statement or request.problem_statement,
        executive_summary=plan.executive_summary,
        value_proposition=plan.value_proposition,
        mvp_scope=plan.mvp_scope,
        key_features=plan.key_features,
        success_criteria=plan.success_criteria,
        potential_challenges=plan.potential_challenges,
        next_steps=plan.next_steps,
        features_data=results["features"].data,
        milestones_data=results["milestones"].data,
        kpis_data=results["kpis"].data,
        diagrams_data=results["diagrams"].data,
    )


async def run_generation(
    request: GenerationRequest,
    save_plan: SavePlan,
    generators: Optional[Dict[str, Generator]] = None,
) -> GenerationRunResponse:
    """Run the full pipeline and report per-artifact status and results."""
    progress = GenerationProgress()
    graph = create_generation_graph(generators or GENERATORS, progress, save_plan)

    print(f"🚀 [PIPELINE] Starting generation for project={request.project_name}")
    final_state = await graph.ainvoke({"request": request, "results": {}, "plan_id": None})

    results = final_state.get("results") or {}
    plan_id = final_state.get("plan_id")
    if not progress.all_complete:
        failed = [a for a, s in progress.steps.items() if s == GenerationStatus.ERROR]
        logger.warning("Generation incomplete for %s; failed=%s", request.project_name, failed)

    print(f"🏁 [PIPELINE] Finished at {progress.percent}%")
    return GenerationRunResponse(
        success=progress.all_complete,
        progress=progress.percent,
        steps={a: s.value for a, s in progress.steps.items()},
        results={a: r.body() for a, r in results.items()},
        plan_id=plan_id,
    )
