"""Downloadable project and plan documents.

Builders take ORM rows (or anything with the same attributes) and return the
document text. Every user-supplied string embedded in HTML or SVG goes through
``html.escape``.
"""

from __future__ import annotations

import html
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

_WHITESPACE_RE = re.compile(r"\s+")

NO_PROBLEM_STATEMENT = "No problem statement provided."
NO_DIAGRAM_TEXT = "No diagram data available"

_NODE_WIDTH = 160
_NODE_HEIGHT = 48
_SVG_WIDTH = 800
_SVG_HEIGHT = 600


def _e(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def filename_stem(project_name: str) -> str:
    """``"My Cool App"`` -> ``"My-Cool-App"``."""
    return _WHITESPACE_RE.sub("-", project_name.strip())


def presentation_filename(project_name: str) -> str:
    return f"{filename_stem(project_name)}-MVP-Presentation.html"


def flow_diagram_filename(project_name: str) -> str:
    return f"{filename_stem(project_name)}-Flow-Diagram.svg"


def _mvp_features(features: Iterable[Any]) -> List[Any]:
    return [f for f in features if f.include_in_mvp]


def _by_order(milestones: Iterable[Any]) -> List[Any]:
    return sorted(milestones, key=lambda m: m.order)


# ---------------------------------------------------------------------------
# Project exports
# ---------------------------------------------------------------------------
_SLIDE_STYLE = """
    body { font-family: Arial, sans-serif; margin: 40px; }
    h1 { color: #4338ca; }
    h2 { color: #6366f1; margin-top: 30px; }
    p, li { line-height: 1.5; }
    .slide { margin-bottom: 40px; border-bottom: 1px solid #ddd; padding-bottom: 20px; }
"""


def _slide(title: str, body: str) -> str:
    return f'<div class="slide">\n<h2>{_e(title)}</h2>\n{body}\n</div>'


def _list_html(items: Sequence[str], empty: str) -> str:
    if not items:
        return f"<p>{_e(empty)}</p>"
    return "<ul>\n" + "\n".join(f"<li>{item}</li>" for item in items) + "\n</ul>"


def build_presentation_html(
    project: Any,
    features: Iterable[Any] = (),
    milestones: Iterable[Any] = (),
    kpis: Iterable[Any] = (),
) -> str:
    """HTML slide deck: title, problem, MVP features, timeline, KPIs, closing."""
    feature_items = [
        f"<strong>{_e(f.name)}</strong> ({_e(f.priority)} priority, {_e(f.difficulty)})"
        + (f": {_e(f.description)}" if f.description else "")
        for f in _mvp_features(features)
    ]
    milestone_items = [
        f"<strong>{_e(m.title)}</strong> ({_e(m.duration)} weeks)"
        + (f": {_e(m.description)}" if m.description else "")
        for m in _by_order(milestones)
    ]
    kpi_items = [
        f"<strong>{_e(k.name)}</strong>"
        + (f": target {_e(k.target)}" if k.target else "")
        + (f" within {_e(k.timeframe)}" if k.timeframe else "")
        for k in kpis
    ]

    slides = [
        f'<div class="slide">\n<h1>{_e(project.name)}</h1>\n<p>MVP Presentation</p>\n'
        f"<p>{_e(project.industry)} | {_e(project.audience)}</p>\n</div>",
        _slide("Problem Statement", f"<p>{_e(project.problem_statement or NO_PROBLEM_STATEMENT)}</p>"),
        _slide("MVP Features", _list_html(feature_items, "No features selected for the MVP yet.")),
        _slide("Timeline", _list_html(milestone_items, "No milestones defined yet.")),
        _slide("Key Performance Indicators", _list_html(kpi_items, "No KPIs defined yet.")),
        _slide("Thank You", "<p>Questions and feedback are welcome!</p>"),
    ]

    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f"<title>{_e(project.name)} - MVP Presentation</title>\n"
        f"<style>{_SLIDE_STYLE}</style>\n</head>\n<body>\n"
        + "\n".join(slides)
        + "\n</body>\n</html>\n"
    )


def build_readme(
    project: Any,
    features: Iterable[Any] = (),
    milestones: Iterable[Any] = (),
    kpis: Iterable[Any] = (),
) -> str:
    """Markdown README: overview, MVP features, timeline, KPIs, boilerplate."""
    lines = [
        f"# {project.name}",
        "",
        "## Overview",
        "",
        project.problem_statement or NO_PROBLEM_STATEMENT,
        "",
    ]
    if project.key_benefits:
        lines += ["### Key Benefits", ""] + [f"- {b}" for b in project.key_benefits] + [""]

    lines += ["## Features", ""]
    lines += [f"- {f.name}: {f.description}" if f.description else f"- {f.name}" for f in _mvp_features(features)]
    lines.append("")

    ordered = _by_order(milestones)
    if ordered:
        lines += ["## Timeline", ""]
        lines += [f"{i + 1}. {m.title} ({m.duration} weeks)" for i, m in enumerate(ordered)]
        lines.append("")

    kpi_list = list(kpis)
    if kpi_list:
        lines += ["## Key Performance Indicators", ""]
        for k in kpi_list:
            detail = ", ".join(p for p in (k.target and f"target {k.target}", k.timeframe) if p)
            lines.append(f"- {k.name}" + (f" ({detail})" if detail else ""))
        lines.append("")

    lines += [
        "## Installation",
        "",
        "Installation instructions here.",
        "",
        "## Usage",
        "",
        "Usage guidelines here.",
        "",
        "## License",
        "",
        "MIT",
        "",
    ]
    return "\n".join(lines)


def _svg_open(title: str) -> str:
    return (
        f'<svg width="{_SVG_WIDTH}" height="{_SVG_HEIGHT}" xmlns="http://www.w3.org/2000/svg">\n'
        '<rect width="100%" height="100%" fill="white"/>\n'
        f'<text x="{_SVG_WIDTH // 2}" y="50" font-family="Arial" font-size="24" '
        f'text-anchor="middle" fill="#444">{_e(title)}</text>\n'
    )


def build_flow_svg(project_name: str, graph: Optional[Dict[str, Any]]) -> str:
    """SVG of a flow graph, or a placeholder when there is no diagram."""
    title = f"{project_name} - Flow Diagram"
    nodes = (graph or {}).get("nodes") or []

    if graph is None or not nodes:
        return (
            _svg_open(title)
            + f'<text x="{_SVG_WIDTH // 2}" y="340" font-family="Arial" font-size="16" '
            f'text-anchor="middle" fill="#999">{NO_DIAGRAM_TEXT}</text>\n</svg>\n'
        )

    centers = {}
    node_parts = []
    for node in nodes:
        pos = node.get("position") or {}
        x, y = float(pos.get("x", 0)), float(pos.get("y", 0))
        centers[node.get("id")] = (x + _NODE_WIDTH / 2, y + _NODE_HEIGHT / 2)
        data = node.get("data") or {}
        fill = data.get("color") or "#eef2ff"
        node_parts.append(
            f'<rect x="{x:g}" y="{y:g}" width="{_NODE_WIDTH}" height="{_NODE_HEIGHT}" rx="8" '
            f'fill="{_e(fill)}" stroke="#6366f1"/>\n'
            f'<text x="{x + _NODE_WIDTH / 2:g}" y="{y + _NODE_HEIGHT / 2 + 5:g}" font-family="Arial" '
            f'font-size="14" text-anchor="middle" fill="#1f2937">{_e(data.get("label", ""))}</text>'
        )

    edge_parts = []
    for edge in (graph or {}).get("edges") or []:
        src, dst = centers.get(edge.get("source")), centers.get(edge.get("target"))
        if src is None or dst is None:
            continue
        edge_parts.append(
            f'<line x1="{src[0]:g}" y1="{src[1]:g}" x2="{dst[0]:g}" y2="{dst[1]:g}" '
            'stroke="#94a3b8" stroke-width="2" marker-end="url(#arrow)"/>'
        )
        if edge.get("label"):
            mx, my = (src[0] + dst[0]) / 2, (src[1] + dst[1]) / 2
            edge_parts.append(
                f'<text x="{mx:g}" y="{my - 6:g}" font-family="Arial" font-size="12" '
                f'text-anchor="middle" fill="#64748b">{_e(edge["label"])}</text>'
            )

    return (
        _svg_open(title)
        + '<defs><marker id="arrow" markerWidth="10" markerHeight="10" refX="9" refY="3" '
        'orient="auto"><path d="M0,0 L0,6 L9,3 z" fill="#94a3b8"/></marker></defs>\n'
        + '<g transform="translate(100, 100)">\n'
        + "\n".join(edge_parts + node_parts)
        + "\n</g>\n</svg>\n"
    )


# ---------------------------------------------------------------------------
# Saved plan exports
# ---------------------------------------------------------------------------
_PLAN_SECTIONS = (
    ("Executive Summary", "executive_summary"),
    ("Problem Statement", "problem_statement"),
    ("Target Audience", "audience"),
    ("Value Proposition", "value_proposition"),
    ("MVP Scope", "mvp_scope"),
    ("Success Criteria", "success_criteria"),
    ("Potential Challenges", "potential_challenges"),
    ("Next Steps", "next_steps"),
)

_DIAGRAM_TITLES = (
    ("User Flow Diagram", "userFlowDiagram"),
    ("Data Flow Diagram", "dataFlowDiagram"),
    ("System Architecture Diagram", "systemArchitectureDiagram"),
)


def _items(blob: Any, key: str) -> List[Dict[str, Any]]:
    if not isinstance(blob, dict):
        return []
    return [item for item in blob.get(key) or [] if isinstance(item, dict)]


def _str_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)] if value else []


def build_plan_markdown(plan: Any) -> str:
    """Full plan document with sections, features, milestones, KPIs, diagrams."""
    out = [f"# MVP Plan: {plan.name}", "", f"*{plan.industry}*", ""]

    for title, attr in _PLAN_SECTIONS:
        value = getattr(plan, attr, None)
        if value:
            out += [f"## {title}", "", str(value), ""]
        if attr == "mvp_scope" and plan.key_features:
            out += ["## Key Features", ""] + [f"- {f}" for f in plan.key_features] + [""]

    features = _items(plan.features_data, "featureIdeas")
    if features:
        out += ["## Detailed Feature Breakdown", ""]
        for f in features:
            out += [
                f"### {f.get('name', '')}",
                "",
                f"Priority: {f.get('priority', '')} | Difficulty: {f.get('difficulty', '')}",
                "",
                str(f.get("description", "")),
                "",
            ]
            if f.get("value"):
                out += [f"**Value:** {f['value']}", ""]
            if f.get("reasoning"):
                out += [f"**Implementation Notes:** {f['reasoning']}", ""]

    milestones = sorted(_items(plan.milestones_data, "milestones"), key=lambda m: m.get("order") or 0)
    if milestones:
        out += ["## Development Timeline", ""]
        for i, m in enumerate(milestones):
            out += [f"### {i + 1}. {m.get('title', '')} ({m.get('duration', '?')} weeks)", "", str(m.get("description", "")), ""]
            deliverables = _str_list(m.get("deliverables"))
            if deliverables:
                out += ["**Deliverables:**", ""] + [f"- {d}" for d in deliverables] + [""]

    kpis = _items(plan.kpis_data, "kpis")
    if kpis:
        out += ["## Key Performance Indicators", ""]
        for k in kpis:
            out += [
                f"### {k.get('name', '')}",
                "",
                str(k.get("description", "")),
                "",
                f"Target: {k.get('target', '')} | Timeframe: {k.get('timeframe', '')}",
                "",
            ]

    diagrams = plan.diagrams_data if isinstance(plan.diagrams_data, dict) else {}
    if diagrams:
        out += ["## System Diagrams", ""]
        for title, key in _DIAGRAM_TITLES:
            if diagrams.get(key):
                out += [f"### {title}", "", "```mermaid", diagrams[key], "```", ""]
        if diagrams.get("explanation"):
            out += [str(diagrams["explanation"]), ""]

    out += ["---", "", f"Generated by MVP Planner | {_generated_on(plan)}", ""]
    return "\n".join(out)


_PLAN_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 20px; }
    h1 { color: #4338ca; text-align: center; }
    h2 { color: #6366f1; border-bottom: 1px solid #d4d4d8; padding-bottom: 8px; }
    .card { border: 1px solid #e5e7eb; border-radius: 8px; padding: 16px; margin-bottom: 16px; background-color: #f9fafb; }
    .meta { display: inline-block; background: #e0e7ff; color: #4338ca; font-size: 12px; padding: 3px 8px; border-radius: 4px; margin-right: 8px; }
    .footer { margin-top: 50px; text-align: center; font-size: 12px; color: #6b7280; }
"""


def build_plan_html(plan: Any) -> str:
    parts = [f"<h1>MVP Plan: {_e(plan.name)}</h1>"]

    for title, attr in _PLAN_SECTIONS:
        value = getattr(plan, attr, None)
        if value:
            parts.append(f'<div class="section"><h2>{title}</h2><p>{_e(value)}</p></div>')
        if attr == "mvp_scope" and plan.key_features:
            parts.append(
                '<div class="section"><h2>Key Features</h2>'
                + _list_html([_e(f) for f in plan.key_features], "")
                + "</div>"
            )

    features = _items(plan.features_data, "featureIdeas")
    if features:
        cards = [
            f'<div class="card"><h4>{_e(f.get("name"))}</h4>'
            f'<p><span class="meta">Priority: {_e(f.get("priority"))}</span>'
            f'<span class="meta">Difficulty: {_e(f.get("difficulty"))}</span></p>'
            f'<p>{_e(f.get("description"))}</p></div>'
            for f in features
        ]
        parts.append('<div class="section"><h2>Detailed Feature Breakdown</h2>' + "".join(cards) + "</div>")

    milestones = sorted(_items(plan.milestones_data, "milestones"), key=lambda m: m.get("order") or 0)
    if milestones:
        cards = [
            f'<div class="card"><h4>{i + 1}. {_e(m.get("title"))} '
            f'<span class="meta">{_e(m.get("duration"))} weeks</span></h4>'
            f'<p>{_e(m.get("description"))}</p>'
            + _list_html([_e(d) for d in _str_list(m.get("deliverables"))], "")
            + "</div>"
            for i, m in enumerate(milestones)
        ]
        parts.append('<div class="section"><h2>Development Timeline</h2>' + "".join(cards) + "</div>")

    kpis = _items(plan.kpis_data, "kpis")
    if kpis:
        cards = [
            f'<div class="card"><h4>{_e(k.get("name"))}</h4><p>{_e(k.get("description"))}</p>'
            f'<p>Target: {_e(k.get("target"))} | Timeframe: {_e(k.get("timeframe"))}</p></div>'
            for k in kpis
        ]
        parts.append('<div class="section"><h2>Key Performance Indicators</h2>' + "".join(cards) + "</div>")

    diagrams = plan.diagrams_data if isinstance(plan.diagrams_data, dict) else {}
    if diagrams:
        blocks = [
            f'<h3>{title}</h3><pre class="mermaid">{_e(diagrams[key])}</pre>'
            for title, key in _DIAGRAM_TITLES
            if diagrams.get(key)
        ]
        if diagrams.get("explanation"):
            blocks.append(f"<p>{_e(diagrams['explanation'])}</p>")
        parts.append('<div class="section"><h2>System Diagrams</h2>' + "".join(blocks) + "</div>")

    parts.append(f'<div class="footer"><p>Generated by MVP Planner | {_generated_on(plan)}</p></div>')

    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f"<title>MVP Plan: {_e(plan.name)}</title>\n<style>{_PLAN_STYLE}</style>\n"
        "</head>\n<body>\n" + "\n".join(parts) + "\n</body>\n</html>\n"
    )


def _generated_on(plan: Any) -> str:
    created = getattr(plan, "created_at", None) or datetime.utcnow()
    return created.strftime("%Y-%m-%d")
