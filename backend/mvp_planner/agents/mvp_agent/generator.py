"""MVP planning generators, one per artifact.

Each generator builds the artifact prompt, calls the centralized LLM client,
and extracts the JSON object from the reply. Results come back as a
``GenerationResult`` rather than an exception so the HTTP layer and the
orchestrator treat every artifact the same way.

Diagrams are the exception to the failure rule: once the request has passed
field validation, they always succeed, substituting placeholder diagrams when
the model call or parsing goes wrong.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict

from ...schemas.generation_schema import GenerationRequest, GenerationResult
from ...services.json_extraction import extract_json
from ...services.llm_client import LLMError, call_llm_async
from .diagrams import fallback_diagram_set, sanitize_diagram_set
from .prompts import PROMPT_BUILDERS

logger = logging.getLogger(__name__)

_DEFAULT_MAX_TOKENS = 2000
_DIAGRAM_MAX_TOKENS = 3000

FAILURE_MESSAGES = {
    "plan": "Failed to generate MVP plan",
    "features": "Failed to generate feature ideas",
    "milestones": "Failed to generate milestones",
    "kpis": "Failed to generate KPIs",
    "diagrams": "Failed to generate diagrams",
}

Generator = Callable[[GenerationRequest], Awaitable[GenerationResult]]


async def _ask_model(artifact: str, req: GenerationRequest, max_tokens: int):
    system, build_prompt = PROMPT_BUILDERS[artifact]
    print(f"🧠 [PLANNER] Generating {artifact} for project={req.project_name}")
    raw = await call_llm_async(
        system=system,
        prompt=build_prompt(req),
        max_completion_tokens=max_tokens,
    )
    return extract_json(raw)


async def _generate(artifact: str, req: GenerationRequest) -> GenerationResult:
    try:
        data = await _ask_model(artifact, req, _DEFAULT_MAX_TOKENS)
    except (LLMError, ValueError) as exc:
        # ValueError covers JSONExtractionError
        logger.error("Generation of %s failed: %s", artifact, exc)
        print(f"❌ [PLANNER] {artifact} failed: {exc}")
        return GenerationResult.fail(FAILURE_MESSAGES[artifact])

    if not isinstance(data, dict):
        logger.error("Generation of %s returned %s, expected a JSON object", artifact, type(data).__name__)
        print(f"❌ [PLANNER] {artifact} failed: reply was not a JSON object")
        return GenerationResult.fail(FAILURE_MESSAGES[artifact])

    print(f"✅ [PLANNER] {artifact} generated")
    return GenerationResult.ok(data)


async def generate_plan(req: GenerationRequest) -> GenerationResult:
    return await _generate("plan", req)


async def generate_features(req: GenerationRequest) -> GenerationResult:
    return await _generate("features", req)


async def generate_milestones(req: GenerationRequest) -> GenerationResult:
    return await _generate("milestones", req)


async def generate_kpis(req: GenerationRequest) -> GenerationResult:
    return await _generate("kpis", req)


async def generate_diagrams(req: GenerationRequest) -> GenerationResult:
    """Generate the user flow, data flow and architecture diagrams.

    Never returns a failed result. Any error is logged and replaced by the
    fallback diagram set whose explanation carries the error message.
    """
    try:
        parsed = await _ask_model("diagrams", req, _DIAGRAM_MAX_TOKENS)
    except Exception as exc:
        logger.warning("Diagram generation failed, using fallback: %s", exc)
        print(f"⚠️  [PLANNER] diagrams fell back to placeholders: {exc}")
        return GenerationResult.ok(fallback_diagram_set(str(exc)))

    print("✅ [PLANNER] diagrams generated")
    return GenerationResult.ok(sanitize_diagram_set(parsed))


GENERATORS: Dict[str, Generator] = {
    "plan": generate_plan,
    "features": generate_features,
    "milestones": generate_milestones,
    "kpis": generate_kpis,
    "diagrams": generate_diagrams,
}
