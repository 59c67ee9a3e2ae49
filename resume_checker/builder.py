"""
Resume Builder
===============
Five-step linear wizard (Personal Info → Experience → Education → Skills →
Review) and the list operations on the draft document.

The step is a WizardStep value and only transition() moves it, so an
out-of-range step cannot be produced. "next" saves the draft before
advancing; "previous" only moves. Nothing blocks advancement.

Draft operations return a new ResumeBuilderData and never mutate their input.
"""

import logging
from enum import Enum
from typing import Any, Optional, Tuple

from .models import Education, Experience, ResumeBuilderData, WizardState, WizardStep
from .store import ResumeStore

logger = logging.getLogger(__name__)

FIRST_STEP = WizardStep.PERSONAL_INFO
LAST_STEP = WizardStep.REVIEW


class WizardAction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"


def transition(step: WizardStep, action: WizardAction) -> WizardStep:
    """Move one step forward or back, clamped at both ends."""
    if action is WizardAction.NEXT:
        return WizardStep(min(step + 1, LAST_STEP))
    return WizardStep(max(step - 1, FIRST_STEP))


# ── Experience / Education ───────────────────────────────────────

def add_experience(data: ResumeBuilderData) -> Tuple[ResumeBuilderData, Experience]:
    entry = Experience()
    return data.model_copy(update={"experiences": [*data.experiences, entry]}), entry


def update_experience(data: ResumeBuilderData, entry_id: str, **changes: Any) -> ResumeBuilderData:
    experiences = [
        exp.model_copy(update=changes) if exp.id == entry_id else exp
        for exp in data.experiences
    ]
    return data.model_copy(update={"experiences": experiences})


def remove_experience(data: ResumeBuilderData, entry_id: str) -> ResumeBuilderData:
    return data.model_copy(update={
        "experiences": [exp for exp in data.experiences if exp.id != entry_id],
    })


def add_education(data: ResumeBuilderData) -> Tuple[ResumeBuilderData, Education]:
    entry = Education()
    return data.model_copy(update={"education": [*data.education, entry]}), entry


def update_education(data: ResumeBuilderData, entry_id: str, **changes: Any) -> ResumeBuilderData:
    education = [
        edu.model_copy(update=changes) if edu.id == entry_id else edu
        for edu in data.education
    ]
    return data.model_copy(update={"education": education})


def remove_education(data: ResumeBuilderData, entry_id: str) -> ResumeBuilderData:
    return data.model_copy(update={
        "education": [edu for edu in data.education if edu.id != entry_id],
    })


# ── Skills / Certifications ──────────────────────────────────────

def _add_unique(values: list, value: str) -> Optional[list]:
    """New list with value appended, or None if it is blank or already present."""
    value = value.strip()
    if not value or value in values:
        return None
    return [*values, value]


def _remove_one(values: list, value: str) -> list:
    remaining = list(values)
    if value in remaining:
        remaining.remove(value)
    return remaining


def add_skill(data: ResumeBuilderData, skill: str) -> ResumeBuilderData:
    skills = _add_unique(data.skills, skill)
    if skills is None:
        logger.debug(f"Rejected skill {skill!r}: blank or duplicate")
        return data
    return data.model_copy(update={"skills": skills})


def remove_skill(data: ResumeBuilderData, skill: str) -> ResumeBuilderData:
    return data.model_copy(update={"skills": _remove_one(data.skills, skill)})


def add_certification(data: ResumeBuilderData, certification: str) -> ResumeBuilderData:
    certifications = _add_unique(data.certifications, certification)
    if certifications is None:
        logger.debug(f"Rejected certification {certification!r}: blank or duplicate")
        return data
    return data.model_copy(update={"certifications": certifications})


def remove_certification(data: ResumeBuilderData, certification: str) -> ResumeBuilderData:
    return data.model_copy(update={"certifications": _remove_one(data.certifications, certification)})


# ── Wizard service ───────────────────────────────────────────────

class ResumeBuilder:
    """Draft persistence and step navigation for one store."""

    def __init__(self, store: ResumeStore):
        self.store = store

    def load(self, user_id: str) -> ResumeBuilderData:
        """Saved draft, or the empty initial draft."""
        return self.store.load_draft(user_id) or ResumeBuilderData()

    def save(self, user_id: str, data: ResumeBuilderData) -> ResumeBuilderData:
        self.store.save_draft(user_id, data)
        return data

    def move(self, user_id: str, step: WizardStep, action: WizardAction,
             data: ResumeBuilderData) -> WizardState:
        """
        Apply a navigation action.
        NEXT persists the current draft first; a failed save raises and the
        step does not change.
        """
        saved = False
        if action is WizardAction.NEXT:
            self.store.save_draft(user_id, data)
            saved = True
        new_step = transition(step, action)
        logger.info(f"Builder {user_id[:8]}...: {step.label} -> {new_step.label}")
        return WizardState(step=new_step, step_name=new_step.label, saved=saved, data=data)
