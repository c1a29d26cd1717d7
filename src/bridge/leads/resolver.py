"""Find-or-create resolution of Company and Person records.

Companies are matched by website domain when one can be derived, otherwise
by exact name. People are matched by exact primary email. Matches are
returned as-is (stale fields are never refreshed); misses are created.

Lookups are not guarded: a CRMError from a find query propagates to the
caller. Creation is tolerant: a failed or id-less create is logged, recorded
in the step log, and resolves to None so processing can continue.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import structlog

from src.bridge.crm.errors import CRMError
from src.bridge.crm.gateway import CRMGateway
from src.bridge.crm.schemas import CompanyCreate, Emails, FullName, PersonCreate, company_filter
from src.bridge.leads.schemas import StepResult

logger = structlog.get_logger(__name__)


def derive_domain(website: str | None) -> str | None:
    """Return the website's hostname with a leading ``www.`` stripped.

    URLs without a scheme or host do not parse and yield None.
    """
    if not website:
        return None
    try:
        hostname = urlsplit(website.strip()).hostname
    except ValueError:
        hostname = None
    if not hostname:
        logger.warning("resolver.website_unparseable", website=website)
        return None
    return hostname.removeprefix("www.")


class EntityResolver:
    """Resolves the Company and Person for one lead event.

    Args:
        gateway: CRM record operations.
        steps: Optional step log that lookup/create results are appended to.
    """

    def __init__(self, gateway: CRMGateway, steps: list[StepResult] | None = None) -> None:
        self._gateway = gateway
        self._steps = steps if steps is not None else []

    @property
    def steps(self) -> list[StepResult]:
        return self._steps

    async def resolve_company(self, name: str | None, website: str | None) -> str | None:
        """Find or create the lead's company, returning its id or None.

        Makes no CRM calls when neither a domain nor a name is available.
        """
        domain = derive_domain(website)
        filter = company_filter(domain, name)
        if filter is None:
            logger.info("resolver.company_skipped", reason="no name or domain")
            return None

        company_id = await self._gateway.find_company(filter)
        if company_id:
            logger.info("resolver.company_found", company_id=company_id, domain=domain, name=name)
            self._steps.append(StepResult(step="company.lookup", ok=True, entity_id=company_id))
            return company_id

        if not name:
            logger.info("resolver.company_not_found", domain=domain, reason="no name to create with")
            return None

        try:
            company_id = await self._gateway.create_company(CompanyCreate.for_lead(name, domain))
        except CRMError as exc:
            logger.warning("resolver.company_create_failed", name=name, error=str(exc))
            self._steps.append(StepResult(step="company.create", ok=False, error=str(exc)))
            return None

        if not company_id:
            logger.error("resolver.company_create_failed", name=name, error="no id in response")
            self._steps.append(
                StepResult(step="company.create", ok=False, error="no id in response")
            )
            return None

        logger.info("resolver.company_created", company_id=company_id, name=name, domain=domain)
        self._steps.append(StepResult(step="company.create", ok=True, entity_id=company_id))
        return company_id

    async def resolve_person(
        self,
        email: str,
        first_name: str,
        last_name: str,
        company_id: str | None,
        job_title: str | None = None,
        city: str | None = None,
    ) -> str | None:
        """Find or create the lead's person by primary email.

        Never creates a person without an email. The company link, job
        title and city are attached only when present.
        """
        if not email:
            logger.warning("resolver.person_skipped", reason="no email")
            return None

        person_id = await self._gateway.find_person_by_email(email)
        if person_id:
            logger.info("resolver.person_found", person_id=person_id)
            self._steps.append(StepResult(step="person.lookup", ok=True, entity_id=person_id))
            return person_id

        person = PersonCreate(
            name=FullName(first_name=first_name, last_name=last_name),
            emails=Emails(primary_email=email),
            company_id=company_id or None,
            job_title=job_title or None,
            city=city or None,
        )
        try:
            person_id = await self._gateway.create_person(person)
        except CRMError as exc:
            logger.warning("resolver.person_create_failed", error=str(exc))
            self._steps.append(StepResult(step="person.create", ok=False, error=str(exc)))
            return None

        if not person_id:
            logger.error("resolver.person_create_failed", error="no id in response")
            self._steps.append(
                StepResult(step="person.create", ok=False, error="no id in response")
            )
            return None

        logger.info("resolver.person_created", person_id=person_id, company_id=company_id)
        self._steps.append(StepResult(step="person.create", ok=True, entity_id=person_id))
        return person_id
