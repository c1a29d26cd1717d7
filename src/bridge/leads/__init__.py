"""SmartLead lead event handling.

Provides:
- SmartLeadWebhook: inbound payload schema
- EntityResolver: find-or-create Company and Person
- CategoryRules / classify_event: Opportunity vs Task decision
- LeadEventProcessor: the full per-event pipeline, returning a ProcessingOutcome
"""

from src.bridge.leads.classifier import (
    DEFAULT_RULES,
    CategoryRules,
    LeadAction,
    classify_event,
)
from src.bridge.leads.processor import LeadEventProcessor
from src.bridge.leads.resolver import EntityResolver, derive_domain
from src.bridge.leads.schemas import (
    EmailContent,
    LeadCategory,
    LeadData,
    ProcessingOutcome,
    SmartLeadWebhook,
    StepResult,
)

__all__ = [
    "CategoryRules",
    "DEFAULT_RULES",
    "LeadAction",
    "classify_event",
    "EntityResolver",
    "derive_domain",
    "LeadEventProcessor",
    "SmartLeadWebhook",
    "LeadCategory",
    "LeadData",
    "EmailContent",
    "ProcessingOutcome",
    "StepResult",
]
