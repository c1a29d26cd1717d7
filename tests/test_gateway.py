"""Unit tests for TwentyGateway response handling.

Runs the gateway over a real TwentyClient with the Twenty API faked by
FakeTwentyAPI on an httpx.MockTransport.
"""

from __future__ import annotations

import httpx
import pytest

from src.bridge.crm.client import TwentyClient
from src.bridge.crm.errors import InvalidResponseError
from src.bridge.crm.gateway import TwentyGateway
from src.bridge.crm.schemas import CompanyCreate, NoteTargetCreate


@pytest.fixture
def gateway(settings, fake_twenty, fake_sleep) -> TwentyGateway:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_twenty))
    return TwentyGateway(TwentyClient(settings, http_client=http_client, sleep=fake_sleep))


class TestRecordIds:
    """Id extraction from well-formed responses."""

    @pytest.mark.asyncio
    async def test_find_company_returns_first_edge(self, gateway, fake_twenty):
        fake_twenty.companies.append({"id": "company-7", "name": "Acme"})

        assert await gateway.find_company({"name": {"eq": "Acme"}}) == "company-7"

    @pytest.mark.asyncio
    async def test_find_company_without_match(self, gateway):
        assert await gateway.find_company({"name": {"eq": "Nobody"}}) is None

    @pytest.mark.asyncio
    async def test_create_company_reads_list_result(self, gateway, fake_twenty):
        company_id = await gateway.create_company(CompanyCreate.for_lead("Acme", "acme.com"))

        assert company_id == fake_twenty.created["company"][0]["id"]

    @pytest.mark.asyncio
    async def test_missing_record_is_none(self, gateway, fake_twenty):
        fake_twenty.bodies["CreateNoteTarget"] = {"data": {"createNoteTarget": None}}

        target = NoteTargetCreate(note_id="note-1", person_id="person-1")
        assert await gateway.create_note_target(target) is None


class TestMalformedResponses:
    """Records of the wrong JSON type surface as InvalidResponseError."""

    @pytest.mark.parametrize(
        "body",
        [
            {"data": {"companies": []}},
            {"data": {"companies": {"edges": "none"}}},
            {"data": {"companies": {"edges": ["company-1"]}}},
            {"data": {"companies": {"edges": [{"node": "company-1"}]}}},
            {"data": [{"id": "company-1"}]},
        ],
    )
    @pytest.mark.asyncio
    async def test_find_company(self, gateway, fake_twenty, body):
        fake_twenty.bodies["FindCompany"] = body

        with pytest.raises(InvalidResponseError):
            await gateway.find_company({"name": {"eq": "Acme"}})

    @pytest.mark.parametrize(
        "body",
        [
            {"data": {"createCompanies": ["company-1"]}},
            {"data": {"createCompanies": "company-1"}},
        ],
    )
    @pytest.mark.asyncio
    async def test_create_company(self, gateway, fake_twenty, body):
        fake_twenty.bodies["CreateCompany"] = body

        with pytest.raises(InvalidResponseError):
            await gateway.create_company(CompanyCreate.for_lead("Acme", None))
