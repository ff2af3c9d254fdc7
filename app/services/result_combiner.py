"""
Merge per-agent outputs into domain records.

Pure functions: no I/O, no logging of user-facing text.
"""

from typing import Iterable, List, Optional

from app.schemas.agents import CompanyIdentification, PersonContact, ProspectDetails
from app.schemas.prospecting import ExtractedProspectData
from app.services.agent_chain import AgentChainContext, COMPANY_IDENTIFICATION, PROSPECT_DETAILS


FALLBACK_SUMMARY = "AI has extracted the following potential prospects from the provided URL."
EMPTY_SUMMARY = "No prospects with a company name, contact person or email were found on the provided URL."


def _dedupe(values: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive duplicates, keeping first-seen order."""
    seen = set()
    result: List[str] = []
    for value in values:
        text = (value or "").strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        result.append(text)
    return result


def _clean_people(people: Iterable[PersonContact]) -> List[PersonContact]:
    cleaned: List[PersonContact] = []
    seen = set()
    for person in people:
        name = (person.name or "").strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        role = (person.role or "").strip() or None
        cleaned.append(PersonContact(name=name, role=role))
    return cleaned


def combine_prospect(context: AgentChainContext) -> ExtractedProspectData:
    """Merge company identification and prospect details into one prospect."""
    company: Optional[CompanyIdentification] = context.output(COMPANY_IDENTIFICATION)
    details: Optional[ProspectDetails] = context.output(PROSPECT_DETAILS)

    company_name = (company.company_name or "").strip() if company else ""
    return ExtractedProspectData(
        company_name=company_name or None,
        people=_clean_people(details.people) if details else [],
        emails=_dedupe(details.emails) if details else [],
        links=_dedupe(details.links) if details else [],
        industry_keywords=_dedupe(company.industry_keywords) if company else [],
    )


def filter_persistable(prospects: Iterable[ExtractedProspectData]) -> List[ExtractedProspectData]:
    """Keep prospects with a company name, at least one person or at least one email."""
    return [prospect for prospect in prospects if prospect.is_persistable()]


def build_summary(context: AgentChainContext, prospect_count: int) -> str:
    if prospect_count == 0:
        return EMPTY_SUMMARY
    company: Optional[CompanyIdentification] = context.output(COMPANY_IDENTIFICATION)
    summary = (company.company_summary or "").strip() if company else ""
    return summary or FALLBACK_SUMMARY
