"""SmartLead event processing pipeline.

For one webhook event, in order:

1. Resolve the Company (domain, else name) and the Person (email).
2. Create an Opportunity for a positive category update, or a review Task
   linked to the person and company otherwise.
3. Create an activity-log Note linked to every resolved record.

All CRM calls are awaited sequentially because later steps depend on ids
produced by earlier ones. Creation steps after resolution are best-effort:
each failure is logged, recorded in the ProcessingOutcome step log, and
does not stop the remaining steps.
"""

from __future__ import annotations

from collections.abc import Awaitable

import structlog

from src.bridge.crm.errors import CRMError
from src.bridge.crm.gateway import CRMGateway
from src.bridge.crm.schemas import (
    NoteBody,
    NoteCreate,
    NoteTargetCreate,
    OpportunityCreate,
    TaskCreate,
    TaskTargetCreate,
)
from src.bridge.leads.classifier import (
    DEFAULT_RULES,
    CategoryRules,
    LeadAction,
    classify_event,
    note_body,
    note_title,
    opportunity_name,
    task_title,
)
from src.bridge.leads.resolver import EntityResolver
from src.bridge.leads.schemas import ProcessingOutcome, SmartLeadWebhook, StepResult

logger = structlog.get_logger(__name__)


class LeadEventProcessor:
    """Mirrors SmartLead lead events into the CRM.

    Holds no per-request state; every call to process() resolves records
    afresh.

    Args:
        gateway: CRM record operations.
        rules: Category/stage configuration. Defaults to DEFAULT_RULES.
    """

    def __init__(self, gateway: CRMGateway, rules: CategoryRules | None = None) -> None:
        self._gateway = gateway
        self._rules = rules or DEFAULT_RULES

    async def process(self, event: SmartLeadWebhook) -> ProcessingOutcome:
        """Process one event and return what it produced.

        The caller must ensure the event carries a lead email. CRMError from
        company/person lookups propagates; every other step is best-effort.
        """
        if event.lead_data is None or not event.lead_data.email:
            raise ValueError("SmartLead event has no lead email")

        lead = event.lead_data
        category = event.category
        outcome = ProcessingOutcome(event_type=event.event_type, category=category)
        log = logger.bind(event_type=event.event_type, category=category)

        resolver = EntityResolver(self._gateway, steps=outcome.steps)
        outcome.company_id = await resolver.resolve_company(lead.company_name, lead.website)
        outcome.person_id = await resolver.resolve_person(
            email=lead.email,
            first_name=lead.first_name or "",
            last_name=lead.last_name or "",
            company_id=outcome.company_id,
            job_title=lead.job_title,
            city=lead.city,
        )

        action = classify_event(
            self._rules,
            event.event_type,
            category,
            outcome.company_id,
            outcome.person_id,
        )
        outcome.action = action.value

        if action == LeadAction.OPPORTUNITY:
            await self._create_opportunity(outcome, lead.first_name or "", lead.last_name or "")
        elif action == LeadAction.TASK:
            await self._create_task(outcome)
        else:
            log.info("processor.no_action", reason="no person resolved")

        if outcome.company_id or outcome.person_id:
            await self._create_note(outcome, lead.email, event.subject)
        else:
            log.warning("processor.note_skipped", reason="no person or company resolved")

        log.info(
            "processor.completed",
            action=outcome.action,
            company_id=outcome.company_id,
            person_id=outcome.person_id,
            opportunity_id=outcome.opportunity_id,
            task_id=outcome.task_id,
            note_id=outcome.note_id,
            failed_steps=[step.step for step in outcome.failed_steps],
        )
        return outcome

    # ── Steps ────────────────────────────────────────────────────────────────

    async def _create_opportunity(
        self, outcome: ProcessingOutcome, first_name: str, last_name: str
    ) -> None:
        category = outcome.category or ""
        opportunity = OpportunityCreate(
            name=opportunity_name(first_name, last_name, category),
            stage=self._rules.stage_for(category),
            company_id=outcome.company_id,
            point_of_contact_id=outcome.person_id,
        )
        outcome.opportunity_id = await self._attempt(
            outcome, "opportunity.create", self._gateway.create_opportunity(opportunity)
        )

    async def _create_task(self, outcome: ProcessingOutcome) -> None:
        task = TaskCreate(
            title=task_title(outcome.event_type, outcome.category),
            status=self._rules.task_status,
        )
        outcome.task_id = await self._attempt(
            outcome, "task.create", self._gateway.create_task(task)
        )
        if not outcome.task_id:
            return

        targets = []
        if outcome.person_id:
            targets.append(TaskTargetCreate(task_id=outcome.task_id, person_id=outcome.person_id))
        if outcome.company_id:
            targets.append(TaskTargetCreate(task_id=outcome.task_id, company_id=outcome.company_id))

        for target in targets:
            await self._attempt(
                outcome,
                f"task_target.{target.relation}",
                self._gateway.create_task_target(target),
            )

    async def _create_note(
        self, outcome: ProcessingOutcome, email: str, subject: str | None
    ) -> None:
        body = note_body(outcome.event_type, outcome.category, email, subject)
        note = NoteCreate(
            title=note_title(outcome.event_type, outcome.category),
            body_v2=NoteBody.from_text(body),
        )
        outcome.note_id = await self._attempt(
            outcome, "note.create", self._gateway.create_note(note)
        )
        if not outcome.note_id:
            return

        targets = []
        if outcome.person_id:
            targets.append(NoteTargetCreate(note_id=outcome.note_id, person_id=outcome.person_id))
        if outcome.company_id:
            targets.append(NoteTargetCreate(note_id=outcome.note_id, company_id=outcome.company_id))
        if outcome.opportunity_id:
            targets.append(
                NoteTargetCreate(note_id=outcome.note_id, opportunity_id=outcome.opportunity_id)
            )

        for target in targets:
            await self._attempt(
                outcome,
                f"note_target.{target.relation}",
                self._gateway.create_note_target(target),
            )

    async def _attempt(
        self, outcome: ProcessingOutcome, step: str, call: Awaitable[str | None]
    ) -> str | None:
        """Await a best-effort CRM call, recording its result in the step log."""
        try:
            entity_id = await call
        except CRMError as exc:
            logger.warning("processor.step_failed", step=step, error=str(exc))
            outcome.steps.append(StepResult(step=step, ok=False, error=str(exc)))
            return None

        if not entity_id:
            logger.warning("processor.step_failed", step=step, error="no id in response")
            outcome.steps.append(StepResult(step=step, ok=False, error="no id in response"))
            return None

        logger.info("processor.step_succeeded", step=step, entity_id=entity_id)
        outcome.steps.append(StepResult(step=step, ok=True, entity_id=entity_id))
        return entity_id
