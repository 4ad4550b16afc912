"""Centralized constants shared across routes, agents, and exports.

Enumerations here are mirrored by the frontend; keep the string values stable.
"""

from __future__ import annotations

import os

# ── Feature attributes ──────────────────────────────────────────────────
PRIORITIES: tuple[str, ...] = ("Low", "Medium", "High")
DIFFICULTIES: tuple[str, ...] = ("Easy", "Medium", "Hard")

# ── Generation artifacts ────────────────────────────────────────────────
# Order matters: it is the order of the progress bar and of saved results.
ARTIFACTS: tuple[str, ...] = ("plan", "features", "milestones", "kpis", "diagrams")

# A field is "missing" when absent, null, or a blank string.
REQUIRED_GENERATION_FIELDS: dict[str, tuple[str, ...]] = {
    "plan": ("project_name", "industry", "target_audience", "problem_statement", "key_benefits"),
    "features": ("project_name", "industry", "target_audience", "problem_statement", "key_benefits"),
    "milestones": ("project_name", "industry", "problem_statement"),
    "kpis": ("project_name", "industry", "target_audience", "problem_statement"),
    "diagrams": ("project_name", "industry", "problem_statement"),
}

# ── Accounts ────────────────────────────────────────────────────────────
# The admin account sees every saved plan and the user list.
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
