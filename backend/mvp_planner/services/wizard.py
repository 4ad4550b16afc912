"""Planning wizard state machine.

Seven ordered steps, each with a precondition that must hold before the user
may advance past it. Going back is always allowed. Every successful
transition persists the new ``current_step`` through a ``WizardStore``:

  1. ``update_step``: must succeed, otherwise the transition is refused.
  2. ``save_progress``: best-effort; failures are logged and ignored.

A failed precondition never raises: it returns a ``WizardOutcome`` carrying a
user-facing message and leaves the project untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    PROJECT_INFO = "projectInfo"
    IDEA_EXPLORATION = "ideaExploration"
    MVP_PLAN = "mvpPlan"
    FLOW_DIAGRAM = "flowDiagram"
    POWER_POINT = "powerPoint"
    README = "readme"
    REVIEW_EXPORT = "reviewExport"

    @property
    def position(self) -> int:
        return _STEP_INDEX[self]

    def next(self) -> Optional["WizardStep"]:
        i = self.position + 1
        return _STEPS[i] if i < len(_STEPS) else None

    def previous(self) -> Optional["WizardStep"]:
        i = self.position - 1
        return _STEPS[i] if i >= 0 else None

    # Ordering is by position in the wizard, not by string value.
    def __lt__(self, other):
        if not isinstance(other, WizardStep):
            return NotImplemented
        return self.position < other.position

    def __le__(self, other):
        if not isinstance(other, WizardStep):
            return NotImplemented
        return self.position <= other.position

    def __gt__(self, other):
        if not isinstance(other, WizardStep):
            return NotImplemented
        return self.position > other.position

    def __ge__(self, other):
        if not isinstance(other, WizardStep):
            return NotImplemented
        return self.position >= other.position

    def __str__(self) -> str:
        return self.value


_STEPS: List[WizardStep] = list(WizardStep)
_STEP_INDEX: Dict[WizardStep, int] = {step: i for i, step in enumerate(_STEPS)}


# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------
MSG_NO_FEATURES = "Please add at least one feature for your MVP before proceeding."
MSG_NO_MVP_FEATURES = "Please mark at least one feature to include in your MVP before proceeding."
MSG_NO_VALIDATION_SELECTED = "Please select at least one validation method before proceeding."
MSG_NO_MILESTONES = "Please define at least one milestone for your MVP timeline before proceeding."
MSG_NO_KPIS = "Please define at least one Key Performance Indicator (KPI) before proceeding."
MSG_DIAGRAM_TOO_SMALL = "Please create a flow diagram with at least two nodes before proceeding."
MSG_FINAL_STEP = "You are already on the final step."
MSG_SAVE_FAILED = "Failed to save progress. Please try again."


# ---------------------------------------------------------------------------
# Snapshot of everything the preconditions look at
# ---------------------------------------------------------------------------
@dataclass
class FeatureFlag:
    name: str
    include_in_mvp: bool


@dataclass
class ValidationFlag:
    method: str
    is_selected: bool


@dataclass
class WizardSnapshot:
    current_step: WizardStep
    name: str = ""
    industry: str = ""
    audience: str = ""
    problem_statement: str = ""
    features: List[FeatureFlag] = field(default_factory=list)
    validation_methods: List[ValidationFlag] = field(default_factory=list)
    milestone_count: int = 0
    kpi_count: int = 0
    # None when the project has no flow diagram at all
    diagram_node_count: Optional[int] = None


@dataclass
class WizardOutcome:
    ok: bool
    step: WizardStep
    message: Optional[str] = None
    # True when the failure came from persistence rather than a precondition
    persistence_error: bool = False


class WizardStore(Protocol):
    def update_step(self, step: WizardStep) -> None: ...

    def save_progress(self) -> None: ...


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------
def _check_project_info(snap: WizardSnapshot) -> Optional[str]:
    labels = {
        "name": "project name",
        "industry": "industry",
        "audience": "target audience",
        "problem_statement": "problem statement",
    }
    missing = [label for attr, label in labels.items() if not (getattr(snap, attr) or "").strip()]
    if missing:
        return f"Please provide the {', '.join(missing)} before proceeding."
    return None


def _check_idea_exploration(snap: WizardSnapshot) -> Optional[str]:
    # "no features" and "none selected" get different messages
    if not snap.features:
        return MSG_NO_FEATURES
    if not any(f.include_in_mvp for f in snap.features):
        return MSG_NO_MVP_FEATURES
    # An empty validation-method list does not block.
    if snap.validation_methods and not any(m.is_selected for m in snap.validation_methods):
        return MSG_NO_VALIDATION_SELECTED
    return None


def _check_mvp_plan(snap: WizardSnapshot) -> Optional[str]:
    if snap.milestone_count == 0:
        return MSG_NO_MILESTONES
    if snap.kpi_count == 0:
        return MSG_NO_KPIS
    return None


def _check_flow_diagram(snap: WizardSnapshot) -> Optional[str]:
    if snap.diagram_node_count is None or snap.diagram_node_count < 2:
        return MSG_DIAGRAM_TOO_SMALL
    return None


PRECONDITIONS: Dict[WizardStep, Callable[[WizardSnapshot], Optional[str]]] = {
    WizardStep.PROJECT_INFO: _check_project_info,
    WizardStep.IDEA_EXPLORATION: _check_idea_exploration,
    WizardStep.MVP_PLAN: _check_mvp_plan,
    WizardStep.FLOW_DIAGRAM: _check_flow_diagram,
}


def check_advance(snap: WizardSnapshot) -> Optional[str]:
    """Return the blocking message for leaving ``snap.current_step``, or None."""
    if snap.current_step.next() is None:
        return MSG_FINAL_STEP
    check = PRECONDITIONS.get(snap.current_step)
    return check(snap) if check else None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def _persist(store: WizardStore, current: WizardStep, target: WizardStep) -> WizardOutcome:
    try:
        store.update_step(target)
    except Exception as exc:
        logger.error("Wizard step update %s -> %s failed: %s", current, target, exc)
        return WizardOutcome(ok=False, step=current, message=MSG_SAVE_FAILED, persistence_error=True)

    try:
        store.save_progress()
    except Exception as exc:
        logger.warning("Saving progress after step change failed (non-blocking): %s", exc)

    print(f"🧭 [WIZARD] {current} → {target}")
    return WizardOutcome(ok=True, step=target)


def advance(snap: WizardSnapshot, store: WizardStore) -> WizardOutcome:
    """Move to the next step if the current step's precondition holds."""
    message = check_advance(snap)
    if message is not None:
        return WizardOutcome(ok=False, step=snap.current_step, message=message)
    return _persist(store, snap.current_step, snap.current_step.next())


def go_back(snap: WizardSnapshot, store: WizardStore) -> WizardOutcome:
    """Move to the previous step. Unconditional; a no-op on the first step."""
    target = snap.current_step.previous()
    if target is None:
        return WizardOutcome(ok=True, step=snap.current_step)
    return _persist(store, snap.current_step, target)
