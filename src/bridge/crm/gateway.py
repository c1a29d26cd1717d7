"""CRM gateway abstract base class and the Twenty GraphQL implementation.

The lead processing pipeline talks to the CRM only through CRMGateway, so
tests can substitute an in-memory double. TwentyGateway maps each method to
one GraphQL operation and extracts the record id from the response.

Every method returns the record id, or None when the response did not carry
one. CRMError subclasses raised by the client propagate unchanged, and a
response whose records are not JSON objects raises InvalidResponseError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.bridge.crm.client import TwentyClient
from src.bridge.crm.errors import InvalidResponseError
from src.bridge.crm.operations import (
    CREATE_COMPANY_MUTATION,
    CREATE_NOTE_MUTATION,
    CREATE_NOTE_TARGET_MUTATION,
    CREATE_OPPORTUNITY_MUTATION,
    CREATE_PERSON_MUTATION,
    CREATE_TASK_MUTATION,
    CREATE_TASK_TARGET_MUTATION,
    FIND_COMPANY_QUERY,
    FIND_PERSON_QUERY,
)
from src.bridge.crm.schemas import (
    CompanyCreate,
    NoteCreate,
    NoteTargetCreate,
    OpportunityCreate,
    PersonCreate,
    TaskCreate,
    TaskTargetCreate,
)


class CRMGateway(ABC):
    """Abstract interface for the CRM record operations the bridge needs.

    Methods:
        find_company: Id of the first company matching a filter.
        create_company: Create a company, return its id.
        find_person_by_email: Id of the person with this primary email.
        create_person: Create a person, return its id.
        create_opportunity: Create an opportunity, return its id.
        create_task: Create a task, return its id.
        create_task_target: Link a task to a person or company.
        create_note: Create a note, return its id.
        create_note_target: Link a note to a person, company or opportunity.
    """

    @abstractmethod
    async def find_company(self, filter: dict[str, Any]) -> str | None:
        """Return the id of the first company matching ``filter``."""
        ...

    @abstractmethod
    async def create_company(self, company: CompanyCreate) -> str | None:
        """Create a company, return its id."""
        ...

    @abstractmethod
    async def find_person_by_email(self, email: str) -> str | None:
        """Return the id of the person whose primary email equals ``email``."""
        ...

    @abstractmethod
    async def create_person(self, person: PersonCreate) -> str | None:
        """Create a person, return its id."""
        ...

    @abstractmethod
    async def create_opportunity(self, opportunity: OpportunityCreate) -> str | None:
        """Create an opportunity, return its id."""
        ...

    @abstractmethod
    async def create_task(self, task: TaskCreate) -> str | None:
        """Create a task, return its id."""
        ...

    @abstractmethod
    async def create_task_target(self, target: TaskTargetCreate) -> str | None:
        """Link a task to one related record, return the link id."""
        ...

    @abstractmethod
    async def create_note(self, note: NoteCreate) -> str | None:
        """Create a note, return its id."""
        ...

    @abstractmethod
    async def create_note_target(self, target: NoteTargetCreate) -> str | None:
        """Link a note to one related record, return the link id."""
        ...


def _shape_error(field: str) -> InvalidResponseError:
    return InvalidResponseError(f"Unexpected shape for '{field}' in Twenty response")


def _node_id(node: Any, field: str) -> str | None:
    if node is None:
        return None
    if not isinstance(node, dict):
        raise _shape_error(field)
    return node.get("id")


def _first_edge_id(data: dict[str, Any], connection: str) -> str | None:
    conn = data.get(connection)
    if conn is None:
        return None
    if not isinstance(conn, dict):
        raise _shape_error(connection)
    edges = conn.get("edges") or []
    if not isinstance(edges, list):
        raise _shape_error(connection)
    if not edges:
        return None
    if not isinstance(edges[0], dict):
        raise _shape_error(connection)
    return _node_id(edges[0].get("node"), connection)


def _record_id(data: dict[str, Any], field: str) -> str | None:
    record = data.get(field)
    if isinstance(record, list):
        record = record[0] if record else None
    return _node_id(record, field)


class TwentyGateway(CRMGateway):
    """CRMGateway backed by the Twenty GraphQL API.

    Args:
        client: Retrying Twenty GraphQL client.
    """

    def __init__(self, client: TwentyClient) -> None:
        self._client = client

    async def find_company(self, filter: dict[str, Any]) -> str | None:
        data = await self._client.call(FIND_COMPANY_QUERY, {"filter": filter})
        return _first_edge_id(data, "companies")

    async def create_company(self, company: CompanyCreate) -> str | None:
        data = await self._client.call(CREATE_COMPANY_MUTATION, {"input": company.to_input()})
        return _record_id(data, "createCompanies")

    async def find_person_by_email(self, email: str) -> str | None:
        data = await self._client.call(FIND_PERSON_QUERY, {"email": email})
        return _first_edge_id(data, "people")

    async def create_person(self, person: PersonCreate) -> str | None:
        data = await self._client.call(CREATE_PERSON_MUTATION, {"input": person.to_input()})
        return _record_id(data, "createPerson")

    async def create_opportunity(self, opportunity: OpportunityCreate) -> str | None:
        data = await self._client.call(
            CREATE_OPPORTUNITY_MUTATION, {"input": opportunity.to_input()}
        )
        return _record_id(data, "createOpportunity")

    async def create_task(self, task: TaskCreate) -> str | None:
        data = await self._client.call(CREATE_TASK_MUTATION, {"input": task.to_input()})
        return _record_id(data, "createTask")

    async def create_task_target(self, target: TaskTargetCreate) -> str | None:
        data = await self._client.call(CREATE_TASK_TARGET_MUTATION, {"input": target.to_input()})
        return _record_id(data, "createTaskTarget")

    async def create_note(self, note: NoteCreate) -> str | None:
        data = await self._client.call(CREATE_NOTE_MUTATION, {"input": note.to_input()})
        return _record_id(data, "createNote")

    async def create_note_target(self, target: NoteTargetCreate) -> str | None:
        data = await self._client.call(CREATE_NOTE_TARGET_MUTATION, {"input": target.to_input()})
        return _record_id(data, "createNoteTarget")
