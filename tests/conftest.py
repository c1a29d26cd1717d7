"""Shared test doubles and fixtures.

Provides:
- InMemoryCRM: CRMGateway test double with per-method failure injection
- FakeTwentyAPI: httpx.MockTransport handler emulating the Twenty GraphQL API
- FakeSleep: records backoff delays instead of sleeping
- make_settings / make_payload factory fixtures
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from src.bridge.config import Settings
from src.bridge.crm.client import operation_name
from src.bridge.crm.gateway import CRMGateway
from src.bridge.crm.schemas import (
    CompanyCreate,
    NoteCreate,
    NoteTargetCreate,
    OpportunityCreate,
    PersonCreate,
    TaskCreate,
    TaskTargetCreate,
)

TWENTY_URL = "https://crm.example.com/graphql"


def _build_settings(**overrides: Any) -> Settings:
    """Settings with Twenty configured and no .env file lookup."""
    defaults: dict[str, Any] = {
        "TWENTY_API_URL": TWENTY_URL,
        "TWENTY_API_TOKEN": "test-token",
        "SMARTLEAD_WEBHOOK_SECRET": "",
        "SENTRY_DSN": "",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def _build_payload(**overrides: Any) -> dict[str, Any]:
    """A positive LEAD_CATEGORY_UPDATED payload for a new lead at Acme."""
    payload: dict[str, Any] = {
        "event_type": "LEAD_CATEGORY_UPDATED",
        "lead_category": {"new_name": "Interested"},
        "lead_data": {
            "email": "a@b.com",
            "first_name": "A",
            "last_name": "B",
            "company_name": "Acme",
            "website": "https://www.acme.com",
        },
    }
    payload.update(overrides)
    return payload


# ── In-Memory Gateway ────────────────────────────────────────────────────────


class InMemoryCRM(CRMGateway):
    """In-memory CRMGateway for testing without a Twenty instance.

    ``fail[method] = exc`` makes that method raise; ``no_id`` holds method
    names that return None instead of an id. ``fail_targets`` holds relation
    names (person/company/opportunity) whose target creation raises.
    """

    def __init__(self) -> None:
        self.companies: dict[str, dict[str, Any]] = {}
        self.people: dict[str, dict[str, Any]] = {}
        self.opportunities: dict[str, dict[str, Any]] = {}
        self.tasks: dict[str, dict[str, Any]] = {}
        self.notes: dict[str, dict[str, Any]] = {}
        self.task_targets: list[dict[str, Any]] = []
        self.note_targets: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.fail: dict[str, Exception] = {}
        self.no_id: set[str] = set()
        self.fail_targets: dict[str, Exception] = {}
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail:
            raise self.fail[method]

    def add_company(self, name: str, domain: str | None = None) -> str:
        company_id = self._next_id("company")
        link = {"primaryLinkUrl": f"https://{domain}"} if domain else None
        self.companies[company_id] = {"name": name, "domainName": link, "domain": domain}
        return company_id

    def add_person(self, email: str) -> str:
        person_id = self._next_id("person")
        self.people[person_id] = {"emails": {"primaryEmail": email}}
        return person_id

    async def find_company(self, filter: dict[str, Any]) -> str | None:
        self._enter("find_company")
        for company_id, company in self.companies.items():
            if "domainName" in filter:
                if company["domain"] == filter["domainName"]["primaryLinkUrl"]["eq"]:
                    return company_id
            elif company["name"] == filter["name"]["eq"]:
                return company_id
        return None

    async def create_company(self, company: CompanyCreate) -> str | None:
        self._enter("create_company")
        if "create_company" in self.no_id:
            return None
        data = company.to_input()
        link = data.get("domainName")
        domain = link["primaryLinkUrl"].removeprefix("https://") if link else None
        company_id = self._next_id("company")
        self.companies[company_id] = {**data, "domain": domain}
        return company_id

    async def find_person_by_email(self, email: str) -> str | None:
        self._enter("find_person_by_email")
        for person_id, person in self.people.items():
            if person["emails"]["primaryEmail"] == email:
                return person_id
        return None

    async def create_person(self, person: PersonCreate) -> str | None:
        self._enter("create_person")
        if "create_person" in self.no_id:
            return None
        person_id = self._next_id("person")
        self.people[person_id] = person.to_input()
        return person_id

    async def create_opportunity(self, opportunity: OpportunityCreate) -> str | None:
        self._enter("create_opportunity")
        if "create_opportunity" in self.no_id:
            return None
        opportunity_id = self._next_id("opportunity")
        self.opportunities[opportunity_id] = opportunity.to_input()
        return opportunity_id

    async def create_task(self, task: TaskCreate) -> str | None:
        self._enter("create_task")
        if "create_task" in self.no_id:
            return None
        task_id = self._next_id("task")
        self.tasks[task_id] = task.to_input()
        return task_id

    async def create_task_target(self, target: TaskTargetCreate) -> str | None:
        self._enter("create_task_target")
        if target.relation in self.fail_targets:
            raise self.fail_targets[target.relation]
        self.task_targets.append(target.to_input())
        return self._next_id("task-target")

    async def create_note(self, note: NoteCreate) -> str | None:
        self._enter("create_note")
        if "create_note" in self.no_id:
            return None
        note_id = self._next_id("note")
        self.notes[note_id] = note.to_input()
        return note_id

    async def create_note_target(self, target: NoteTargetCreate) -> str | None:
        self._enter("create_note_target")
        if target.relation in self.fail_targets:
            raise self.fail_targets[target.relation]
        self.note_targets.append(target.to_input())
        return self._next_id("note-target")

    @property
    def mutation_calls(self) -> list[str]:
        return [call for call in self.calls if call.startswith("create_")]


# ── Fake Twenty GraphQL API ──────────────────────────────────────────────────


class FakeTwentyAPI:
    """MockTransport handler answering Twenty GraphQL operations from memory.

    Records every request body in ``requests``. ``errors[operation]`` makes
    that operation answer with a GraphQL error; ``bodies[operation]`` makes it
    answer 200 with that raw JSON body.
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.headers: list[httpx.Headers] = []
        self.companies: list[dict[str, Any]] = []
        self.people: list[dict[str, Any]] = []
        self.created: dict[str, list[dict[str, Any]]] = {}
        self.errors: dict[str, str] = {}
        self.bodies: dict[str, Any] = {}

    def operations(self) -> list[str]:
        return [operation_name(body["query"]) for body in self.requests]

    def _create(self, kind: str, data: dict[str, Any]) -> dict[str, Any]:
        records = self.created.setdefault(kind, [])
        record = {"id": f"{kind}-{len(records) + 1}", **data}
        records.append(record)
        return record

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        name = operation_name(body["query"])
        variables = body.get("variables") or {}

        if name in self.errors:
            return httpx.Response(200, json={"errors": [{"message": self.errors[name]}]})
        if name in self.bodies:
            return httpx.Response(200, json=self.bodies[name])

        if name == "FindCompany":
            filter = variables["filter"]
            edges = []
            for company in self.companies:
                if "domainName" in filter:
                    url = (company.get("domainName") or {}).get("primaryLinkUrl", "")
                    if url.removeprefix("https://") == filter["domainName"]["primaryLinkUrl"]["eq"]:
                        edges.append({"node": {"id": company["id"], "name": company["name"]}})
                elif company["name"] == filter["name"]["eq"]:
                    edges.append({"node": {"id": company["id"], "name": company["name"]}})
            return httpx.Response(200, json={"data": {"companies": {"edges": edges[:1]}}})

        if name == "FindPersonByEmail":
            edges = [
                {"node": {"id": person["id"]}}
                for person in self.people
                if person["emails"]["primaryEmail"] == variables["email"]
            ]
            return httpx.Response(200, json={"data": {"people": {"edges": edges[:1]}}})

        if name == "CreateCompany":
            record = self._create("company", variables["input"])
            self.companies.append(record)
            return httpx.Response(200, json={"data": {"createCompanies": [record]}})

        if name == "CreatePerson":
            record = self._create("person", variables["input"])
            self.people.append(record)
            return httpx.Response(200, json={"data": {"createPerson": {"id": record["id"]}}})

        field_by_operation = {
            "CreateOpportunity": ("opportunity", "createOpportunity"),
            "CreateTask": ("task", "createTask"),
            "CreateTaskTarget": ("task_target", "createTaskTarget"),
            "CreateNote": ("note", "createNote"),
            "CreateNoteTarget": ("note_target", "createNoteTarget"),
        }
        kind, field = field_by_operation[name]
        record = self._create(kind, variables["input"])
        return httpx.Response(200, json={"data": {field: {"id": record["id"]}}})


class FakeSleep:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def make_settings():
    """Factory for Settings with Twenty configured; keyword overrides win."""
    return _build_settings


@pytest.fixture
def make_payload():
    """Factory for the Acme LEAD_CATEGORY_UPDATED payload; top-level overrides win."""
    return _build_payload


@pytest.fixture
def settings() -> Settings:
    return _build_settings()


@pytest.fixture
def crm() -> InMemoryCRM:
    return InMemoryCRM()


@pytest.fixture
def fake_twenty() -> FakeTwentyAPI:
    return FakeTwentyAPI()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
