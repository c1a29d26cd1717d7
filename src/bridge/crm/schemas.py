"""Pydantic input schemas for Twenty CRM mutations and filters.

Field names are snake_case in Python and serialize to Twenty's camelCase
input names via aliases. ``to_input()`` drops unset optional fields so that
partial lead data never sends explicit nulls.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TwentyInput(BaseModel):
    """Base for all Twenty mutation inputs."""

    model_config = ConfigDict(populate_by_name=True)

    def to_input(self) -> dict[str, Any]:
        """Serialize to the GraphQL ``$input`` variable."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ── Company ─────────────────────────────────────────────────────────────────


class LinkInput(TwentyInput):
    primary_link_url: str = Field(alias="primaryLinkUrl")


class CompanyCreate(TwentyInput):
    """Company creation input. ``domain_name`` links the company website."""

    name: str
    domain_name: LinkInput | None = Field(default=None, alias="domainName")

    @classmethod
    def for_lead(cls, name: str, domain: str | None) -> CompanyCreate:
        link = LinkInput(primary_link_url=f"https://{domain}") if domain else None
        return cls(name=name, domain_name=link)


def company_filter(domain: str | None, name: str | None) -> dict[str, Any] | None:
    """Build the FindCompany filter: domain equality, else exact name, else None."""
    if domain:
        return {"domainName": {"primaryLinkUrl": {"eq": domain}}}
    if name:
        return {"name": {"eq": name}}
    return None


# ── Person ──────────────────────────────────────────────────────────────────


class FullName(TwentyInput):
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")


class Emails(TwentyInput):
    primary_email: str = Field(alias="primaryEmail")


class PersonCreate(TwentyInput):
    """Person creation input; company, job title and city are optional."""

    name: FullName
    emails: Emails
    company_id: str | None = Field(default=None, alias="companyId")
    job_title: str | None = Field(default=None, alias="jobTitle")
    city: str | None = None


# ── Opportunity ─────────────────────────────────────────────────────────────


class OpportunityCreate(TwentyInput):
    name: str
    stage: str
    company_id: str = Field(alias="companyId")
    point_of_contact_id: str = Field(alias="pointOfContactId")


# ── Task ────────────────────────────────────────────────────────────────────


class TaskCreate(TwentyInput):
    title: str
    status: str = "TODO"


# ── Note ────────────────────────────────────────────────────────────────────


class NoteBody(TwentyInput):
    """Rich-text note body: a BlockNote JSON document plus its markdown."""

    blocknote: str
    markdown: str

    @classmethod
    def from_text(cls, text: str) -> NoteBody:
        blocks = [{"type": "paragraph", "content": text}]
        return cls(blocknote=json.dumps(blocks), markdown=text)


class NoteCreate(TwentyInput):
    title: str
    body_v2: NoteBody = Field(alias="bodyV2")


# ── Targets ─────────────────────────────────────────────────────────────────


class _TargetCreate(TwentyInput):
    """A link record tying a parent (Task/Note) to exactly one related entity."""

    person_id: str | None = Field(default=None, alias="personId")
    company_id: str | None = Field(default=None, alias="companyId")
    opportunity_id: str | None = Field(default=None, alias="opportunityId")

    @model_validator(mode="after")
    def _exactly_one_related(self) -> _TargetCreate:
        related = [self.person_id, self.company_id, self.opportunity_id]
        if sum(1 for value in related if value) != 1:
            raise ValueError("A target must reference exactly one related entity")
        return self

    @property
    def relation(self) -> str:
        """Name of the related entity kind: person, company or opportunity."""
        if self.person_id:
            return "person"
        if self.company_id:
            return "company"
        return "opportunity"


class TaskTargetCreate(_TargetCreate):
    task_id: str = Field(alias="taskId")


class NoteTargetCreate(_TargetCreate):
    note_id: str = Field(alias="noteId")
