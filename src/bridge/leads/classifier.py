"""Event classification and record text for SmartLead events.

Decides which record a lead event produces in the CRM:

- OPPORTUNITY: the trigger event with a positive category, when both the
  company and the person are known
- TASK: anything else for a known person (human review)
- NONE: no person and no qualifying opportunity

The positive category set and the category-to-stage table live in
CategoryRules so they are configuration data rather than code.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class LeadAction(str, Enum):
    """Record created for an event besides the activity note."""

    OPPORTUNITY = "opportunity"
    TASK = "task"
    NONE = "none"


class CategoryRules(BaseModel):
    """Mapping from SmartLead categories to Twenty outcomes."""

    trigger_event: str = "LEAD_CATEGORY_UPDATED"
    positive_categories: frozenset[str] = frozenset(
        {"Interested", "Information Request", "Meeting Request"}
    )
    stage_map: dict[str, str] = Field(
        default_factory=lambda: {
            "Interested": "INTERESTED",
            "Information Request": "INFORMATIONREQUEST",
            "Meeting Request": "MEETINGREQUEST",
        }
    )
    default_stage: str = "INTERESTED"
    task_status: str = "TODO"

    def is_opportunity_trigger(self, event_type: str | None, category: str | None) -> bool:
        """True for the trigger event carrying a positive category."""
        return (
            event_type == self.trigger_event
            and category is not None
            and category in self.positive_categories
        )

    def stage_for(self, category: str) -> str:
        return self.stage_map.get(category, self.default_stage)


DEFAULT_RULES = CategoryRules()


def classify_event(
    rules: CategoryRules,
    event_type: str | None,
    category: str | None,
    company_id: str | None,
    person_id: str | None,
) -> LeadAction:
    """Pick the record to create for an event given the resolved ids.

    A positive event missing either id falls through to the task path.
    """
    if rules.is_opportunity_trigger(event_type, category) and company_id and person_id:
        return LeadAction.OPPORTUNITY
    if person_id:
        return LeadAction.TASK
    return LeadAction.NONE


# ── Record Text ─────────────────────────────────────────────────────────────


def opportunity_name(first_name: str, last_name: str, category: str) -> str:
    return f"Deal for {first_name} {last_name} ({category})"


def task_title(event_type: str | None, category: str | None) -> str:
    return f"SmartLead: Review {category or event_type or 'Interaction'}"


def note_title(event_type: str | None, category: str | None) -> str:
    return f"SmartLead: {category or event_type or 'Interaction Event'}"


def note_body(
    event_type: str | None,
    category: str | None,
    email: str,
    subject: str | None,
) -> str:
    """Assemble the activity-log sentence recorded on every processed event."""
    text = f"SmartLead webhook received. Event: '{event_type}'."
    if category:
        text += f" Category: '{category}'."
    text += f" Lead: {email}."
    if subject:
        text += f' Subject: "{subject}"'
    return text
