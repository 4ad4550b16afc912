"""Prompt templates for the MVP planning generators.

One system prompt and one user-prompt builder per artifact. Each system prompt
restates the exact JSON shape the generator expects back.
"""

from __future__ import annotations

from typing import List, Optional

from ...schemas.generation_schema import CompetitorBrief, FeatureBrief, GenerationRequest

# ---------------------------------------------------------------------------
# System prompts
# ---------------------------------------------------------------------------
PLAN_SYSTEM_PROMPT = (
    "You're an MVP Planning Expert. Always output in valid JSON format with the "
    "following structure exactly: { 'executiveSummary': string, 'problemStatement': string, "
    "'targetAudience': string, 'valueProposition': string, 'mvpScope': string, "
    "'keyFeatures': string[], 'successCriteria': string, 'potentialChallenges': string, "
    "'nextSteps': string }"
)

FEATURES_SYSTEM_PROMPT = (
    "You're a Feature Development Expert specialized in MVP planning. Always output in valid "
    "JSON format with the following structure: { 'featureIdeas': [ { 'name': string, "
    "'description': string, 'value': string, 'priority': string, 'difficulty': string, "
    "'reasoning': string } ] }"
)

MILESTONES_SYSTEM_PROMPT = (
    "You're a Project Management Expert specialized in MVP development timelines. Always output "
    "in valid JSON format with the following structure: { 'milestones': [ { 'title': string, "
    "'description': string, 'duration': number, 'order': number, 'deliverables': string[], "
    "'technical_notes': string, 'validation_steps': string[] } ] }"
)

KPIS_SYSTEM_PROMPT = (
    "You're a Business Analytics Expert specialized in startup metrics. Always output in valid "
    "JSON format with the following structure: { 'kpis': [ { 'name': string, 'description': string, "
    "'target': string, 'timeframe': string, 'importance': string, 'implementation': string, "
    "'interpretation': string, 'benchmarks': string } ] }"
)

DIAGRAMS_SYSTEM_PROMPT = (
    "You're a System Design Expert creating flow diagrams for the user's MVP. For each diagram, "
    "use VALID Mermaid.js syntax. Output JSON with this structure: { 'userFlowDiagram': string, "
    "'dataFlowDiagram': string, 'systemArchitectureDiagram': string, 'explanation': string }. "
    "NO markdown code blocks or backticks in your diagrams! Each diagram should start with "
    "'flowchart LR' or 'flowchart TB' and include proper nodes and connections. Keep diagrams "
    "simple and clear with proper node IDs."
)


# ---------------------------------------------------------------------------
# Shared context blocks
# ---------------------------------------------------------------------------
def _benefits(req: GenerationRequest) -> str:
    return ", ".join(req.key_benefits or [])


def _project_context(req: GenerationRequest, *, audience: bool = True, benefits: bool = True) -> str:
    lines = [
        f"- Project Name: {req.project_name}",
        f"- Industry: {req.industry}",
    ]
    if audience:
        lines.append(f"- Target Audience: {req.target_audience}")
    lines.append(f"- Problem Statement: {req.problem_statement}")
    if benefits:
        lines.append(f"- Key Benefits: {_benefits(req)}")
    return "\n".join(lines)


def _features_block(features: Optional[List[FeatureBrief]], heading: str) -> str:
    if not features:
        return ""
    rows = "\n".join(
        f"- {f.name} ({f.priority} priority, {f.difficulty} difficulty): {f.description}"
        for f in features
    )
    return f"\n{heading}\n{rows}\n"


def _competitors_block(competitors: Optional[List[CompetitorBrief]]) -> str:
    if not competitors:
        return ""
    rows = "\n".join(f"- {c.name}: {', '.join(c.features)}" for c in competitors)
    return f"\nCompetitors and their features:\n{rows}\n"


# ---------------------------------------------------------------------------
# User prompt builders
# ---------------------------------------------------------------------------
def build_plan_prompt(req: GenerationRequest) -> str:
    """Build user prompt for the overall MVP plan."""
    notes = f"\n- Additional Notes: {req.additional_notes}" if req.additional_notes else ""
    return f"""You are an expert MVP planning assistant helping a client design their Minimum Viable Product.

Here's the information about their project:
{_project_context(req)}{notes}
{_features_block(req.features, "Features they're considering:")}{_competitors_block(req.competitors)}
Based on this information, generate a structured JSON response with the following sections:

1. executiveSummary: Brief overview of the project MVP (3-5 sentences)
2. problemStatement: Refined problem statement that clearly identifies the pain points
3. targetAudience: Detailed description of the primary users
4. valueProposition: What unique benefit does this product provide
5. mvpScope: What's included and excluded from the MVP, with clear boundaries
6. keyFeatures: Array of 5-8 specific features to prioritize (just names/one-liners)
7. successCriteria: How to measure if the MVP is successful
8. potentialChallenges: Anticipated obstacles and how to address them
9. nextSteps: The immediate actions to take after MVP launch

You MUST respond with ONLY valid JSON, formatted exactly as described with these exact field names."""


def build_features_prompt(req: GenerationRequest) -> str:
    """Build user prompt for feature brainstorming."""
    return f"""You are an expert MVP planning assistant helping a client brainstorm innovative features for their product.

Here's the information about their project:
{_project_context(req)}

Based on this information, please generate:

1. 8-10 innovative feature ideas for their MVP, including:
   - Feature name
   - Brief description (1-2 sentences)
   - Why this feature is valuable to users
   - Recommended priority (High/Medium/Low)
   - Estimated implementation difficulty (Easy/Medium/Hard)

2. For each feature, explain:
   - How it addresses the core problem
   - Its unique value proposition
   - Ways to simplify it for MVP implementation

Please format your response as structured JSON that can be parsed, with feature ideas as an array under "featureIdeas" where each item has the fields: name, description, value, priority, difficulty, and reasoning."""


def build_milestones_prompt(req: GenerationRequest) -> str:
    """Build user prompt for the development timeline."""
    return f"""You are an expert project manager helping a client create a realistic timeline for their MVP development.

Here's the information about their project:
{_project_context(req, audience=False, benefits=False)}
{_features_block(req.features, "Features to be implemented:")}
Based on this information, please generate:

1. A realistic timeline with 5-7 major milestones for the MVP development, including:
   - Milestone title
   - Brief description of what will be accomplished
   - Estimated duration (in weeks)
   - Logical order/sequence number

2. For each milestone, include:
   - Key deliverables
   - Technical considerations
   - Testing/validation requirements

Please create a realistic schedule that accounts for the scope of work. Format your response as structured JSON that can be parsed, with "milestones" as an array of objects containing: title, description, duration, order, deliverables, technical_notes, and validation_steps."""


def build_kpis_prompt(req: GenerationRequest) -> str:
    """Build user prompt for KPI definition."""
    return f"""You are an expert business analyst helping a client define meaningful KPIs for their MVP.

Here's the information about their project:
{_project_context(req)}

Based on this information, please generate:

1. 6-8 specific, measurable KPIs that will help them evaluate the success of their MVP, including:
   - KPI name
   - Description and calculation method
   - Target value
   - Measurement timeframe
   - Why this KPI is important for this specific project

2. For each KPI, provide:
   - Implementation advice
   - How to interpret results
   - Benchmarks or industry standards if applicable

Please focus on meaningful metrics that will truly validate their business model, not vanity metrics. Format your response as structured JSON that can be parsed, with KPIs as an array under "kpis"."""


def build_diagrams_prompt(req: GenerationRequest) -> str:
    """Build user prompt for the three Mermaid diagrams."""
    return f"""You are an expert system designer helping a client visualize the flows and architecture for their MVP product.

Here's the information about their project:
{_project_context(req)}
{_features_block(req.features, "Features to be implemented:")}
Based on this information, please generate THREE distinct diagrams:

1. USER FLOW DIAGRAM: A comprehensive flowchart that shows the end-to-end journey of users through the application.
   - Focus on user interactions and screens/pages they'll navigate through
   - Highlight decision points and different paths users might take
   - Use flowchart LR or TB direction for better readability

2. DATA FLOW DIAGRAM: Shows how information moves through the system.
   - Identify key data entities and their relationships
   - Show data processing steps, storage points, and data transformations

3. SYSTEM ARCHITECTURE DIAGRAM: Shows the high-level technical components.
   - Display the frontend, backend, and any third-party services
   - Include databases, APIs, and external integrations

4. Provide a detailed explanation for each diagram explaining what it shows and key components.

VERY IMPORTANT:
- For each diagram, use proper Mermaid.js flowchart syntax starting with "flowchart LR" or "flowchart TB"
- Use clear node names (A, B, C, or descriptive IDs like login, dashboard, etc.)
- Keep diagram complexity appropriate for rendering (not too many nodes)
- Do NOT include any markdown code block markers (like ```mermaid)
- Escape any special characters that might break JSON parsing"""


PROMPT_BUILDERS = {
    "plan": (PLAN_SYSTEM_PROMPT, build_plan_prompt),
    "features": (FEATURES_SYSTEM_PROMPT, build_features_prompt),
    "milestones": (MILESTONES_SYSTEM_PROMPT, build_milestones_prompt),
    "kpis": (KPIS_SYSTEM_PROMPT, build_kpis_prompt),
    "diagrams": (DIAGRAMS_SYSTEM_PROMPT, build_diagrams_prompt),
}
