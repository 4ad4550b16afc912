import logging
from typing import Annotated, Any, Callable, Dict, Optional, TypedDict

from fastapi.concurrency import run_in_threadpool
from langgraph.graph import END, START, StateGraph

from ...schemas.generation_schema import FeatureBrief, GenerationRequest, GenerationResult
from .generator import FAILURE_MESSAGES, Generator
from .schema import parse_feature_ideas

logger = logging.getLogger(__name__)


def _merge(left: Dict[str, Any], right: Dict[str, Any]) -> Dict[str, Any]:
    return {**(left or {}), **(right or {})}


class GenerationState(TypedDict):
    request: GenerationRequest
    # Written concurrently by the artifact nodes
    results: Annotated[Dict[str, GenerationResult], _merge]
    plan_id: Optional[str]


def with_feature_ideas(req: GenerationRequest, features: Optional[GenerationResult]) -> GenerationRequest:
    """Swap the request's features for the generated ideas, when there are any."""
    if features is None or not features.success:
        return req
    ideas = parse_feature_ideas(features.data)
    if not ideas:
        return req
    briefs = [
        FeatureBrief(name=i.name, description=i.description, priority=i.priority, difficulty=i.difficulty)
        for i in ideas
    ]
    return req.model_copy(update={"features": briefs})


def _artifact_node(artifact: str, generate: Generator, tracker: Any):
    async def node(state: GenerationState) -> Dict[str, Any]:
        req = state["request"]
        if artifact == "diagrams":
            req = with_feature_ideas(req, state["results"].get("features"))

        tracker.start(artifact)
        try:
            result = await generate(req)
        except Exception as exc:
            logger.exception("Generator for %s raised: %s", artifact, exc)
            result = GenerationResult.fail(FAILURE_MESSAGES[artifact])
        tracker.finish(artifact, result.success)
        return {"results": {artifact: result}}

    node.__name__ = f"generate_{artifact}"
    return node


def _after_plan(state: GenerationState):
    if state["results"]["plan"].success:
        return ["features", "milestones", "kpis"]
    print("⚠️  [PIPELINE] Plan failed, skipping remaining artifacts")
    return END


def _after_kpis(state: GenerationState):
    return "diagrams" if state["results"]["kpis"].success else END


def create_generation_graph(
    generators: Dict[str, Generator],
    tracker: Any,
    save_plan: Callable[[GenerationRequest, Dict[str, GenerationResult]], Optional[str]],
):
    """
    Create the generation pipeline graph.

    Structure:
    START -> plan
          -> [features, milestones, kpis] (parallel, only if plan succeeded)
    kpis  -> diagrams (only if kpis succeeded)
    [features, milestones, diagrams] -> save -> END

    ``save`` persists the plan only when the tracker reports all five
    artifacts complete.
    """
    graph = StateGraph(GenerationState)

    for artifact in ("plan", "features", "milestones", "kpis", "diagrams"):
        graph.add_node(artifact, _artifact_node(artifact, generators[artifact], tracker))

    async def save(state: GenerationState) -> Dict[str, Any]:
        if not tracker.all_complete:
            print("⚠️  [PIPELINE] Not all artifacts complete, plan not saved")
            return {}
        # save_plan does blocking database work
        plan_id = await run_in_threadpool(save_plan, state["request"], state["results"])
        print(f"💾 [PIPELINE] Plan saved id={plan_id}")
        return {"plan_id": plan_id}

    graph.add_node("save", save)

    graph.add_edge(START, "plan")
    graph.add_conditional_edges("plan", _after_plan, ["features", "milestones", "kpis", END])
    graph.add_conditional_edges("kpis", _after_kpis, ["diagrams", END])

    # Join: save runs once all three branches have finished
    graph.add_edge(["features", "milestones", "diagrams"], "save")
    graph.add_edge("save", END)

    return graph.compile()
