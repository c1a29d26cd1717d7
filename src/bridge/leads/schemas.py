"""Pydantic schemas for SmartLead webhook payloads and processing outcomes.

Defines:
- Webhook payload: LeadCategory, LeadData, EmailContent, SmartLeadWebhook
- Processing log: StepResult, ProcessingOutcome

Payload models are lenient: numeric values in text fields are stringified
and values of any other wrong type are dropped, so one malformed optional
field never loses an otherwise usable lead.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _text_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


# ── Webhook Payload ─────────────────────────────────────────────────────────


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _TextPayload(_Payload):
    """Payload object whose fields are all optional text."""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _text_or_none(v)


class LeadCategory(_TextPayload):
    new_name: str | None = None


class LeadData(_TextPayload):
    """Lead fields as sent by SmartLead (``jobTitle`` is camelCase upstream)."""

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    website: str | None = None
    job_title: str | None = Field(default=None, alias="jobTitle")
    city: str | None = None


class EmailContent(_TextPayload):
    subject: str | None = None
    body_text: str | None = None
    body_html: str | None = None


class SmartLeadWebhook(_Payload):
    """A SmartLead webhook event. Unknown fields are ignored."""

    event_type: str | None = None
    lead_category: LeadCategory | None = None
    lead_data: LeadData | None = None
    email_content: EmailContent | None = None

    @field_validator("event_type", mode="before")
    @classmethod
    def _coerce_event_type(cls, v: Any) -> str | None:
        return _text_or_none(v)

    @field_validator("lead_category", "lead_data", "email_content", mode="before")
    @classmethod
    def _drop_non_objects(cls, v: Any) -> Any:
        """Nested sections that are not JSON objects are treated as absent."""
        return v if isinstance(v, (dict, BaseModel)) else None

    @property
    def category(self) -> str | None:
        """The lead's new category name, if the event carries one."""
        if self.lead_category is None:
            return None
        return self.lead_category.new_name or None

    @property
    def subject(self) -> str | None:
        if self.email_content is None:
            return None
        return self.email_content.subject or None

    @property
    def has_lead_email(self) -> bool:
        return bool(self.lead_data and self.lead_data.email)


# ── Processing Log ──────────────────────────────────────────────────────────


class StepResult(BaseModel):
    """Result of one CRM step performed while processing an event.

    ``ok`` is False when the step raised or the CRM returned no id.
    """

    step: str
    ok: bool
    entity_id: str | None = None
    error: str | None = None


class ProcessingOutcome(BaseModel):
    """Everything a single webhook event produced in the CRM."""

    event_type: str | None = None
    category: str | None = None
    action: str = "none"
    company_id: str | None = None
    person_id: str | None = None
    opportunity_id: str | None = None
    task_id: str | None = None
    note_id: str | None = None
    steps: list[StepResult] = Field(default_factory=list)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [step for step in self.steps if not step.ok]

    def step(self, name: str) -> StepResult | None:
        """Return the first recorded step with this name."""
        for result in self.steps:
            if result.step == name:
                return result
        return None
