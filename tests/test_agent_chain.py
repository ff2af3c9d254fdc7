import asyncio

import pytest

from app.errors import AgentFailed, ConfigurationError
from app.schemas.agents import CompanyIdentification, PersonContact, ProspectDetails
from app.schemas.prospecting import ExtractedProspectData
from app.services.agent_chain import (
    COMPANY_IDENTIFICATION,
    PROSPECT_DETAILS,
    PROSPECT_EXTRACTION_CHAIN,
    AgentChainContext,
    AgentChainExecutor,
)
from app.services.result_combiner import (
    EMPTY_SUMMARY,
    FALLBACK_SUMMARY,
    build_summary,
    combine_prospect,
    filter_persistable,
)
from tests.conftest import ACME_RESPONSES, StubModel


pytestmark = pytest.mark.unit


def test_later_agents_see_earlier_outputs():
    sentinel = {
        "companyName": "Sentinel-Co-7f3a",
        "companySummary": "Sentinel summary 7f3a",
        "industrySummary": "",
        "industryKeywords": [],
    }
    model = StubModel({COMPANY_IDENTIFICATION: sentinel, PROSPECT_DETAILS: ACME_RESPONSES[PROSPECT_DETAILS]})

    context = asyncio.run(AgentChainExecutor(model).run(PROSPECT_EXTRACTION_CHAIN, "page text"))

    assert [call["name"] for call in model.calls] == [COMPANY_IDENTIFICATION, PROSPECT_DETAILS]
    details_prompt = model.calls[1]["prompt"]
    assert "Company: Sentinel-Co-7f3a" in details_prompt
    assert "Company summary: Sentinel summary 7f3a" in details_prompt
    assert "page text" in details_prompt
    assert context.output(COMPANY_IDENTIFICATION).company_name == "Sentinel-Co-7f3a"
    assert isinstance(context.output(PROSPECT_DETAILS), ProspectDetails)


def test_failing_agent_stops_the_chain():
    model = StubModel({COMPANY_IDENTIFICATION: RuntimeError("upstream exploded")})

    with pytest.raises(AgentFailed) as exc_info:
        asyncio.run(AgentChainExecutor(model).run(PROSPECT_EXTRACTION_CHAIN, "text"))

    assert exc_info.value.stage == COMPANY_IDENTIFICATION
    assert "upstream exploded" in str(exc_info.value)
    assert model.calls_for(PROSPECT_DETAILS) == []


def test_agent_without_output_fails_with_its_stage():
    model = StubModel({COMPANY_IDENTIFICATION: ACME_RESPONSES[COMPANY_IDENTIFICATION], PROSPECT_DETAILS: None})

    with pytest.raises(AgentFailed) as exc_info:
        asyncio.run(AgentChainExecutor(model).run(PROSPECT_EXTRACTION_CHAIN, "text"))

    assert exc_info.value.stage == PROSPECT_DETAILS


def test_configuration_errors_are_not_wrapped():
    model = StubModel({COMPANY_IDENTIFICATION: ConfigurationError("LLM_API_KEY")})

    with pytest.raises(ConfigurationError):
        asyncio.run(AgentChainExecutor(model).run(PROSPECT_EXTRACTION_CHAIN, "text"))


def _context(company=None, details=None):
    context = AgentChainContext(text="")
    if company is not None:
        context.outputs[COMPANY_IDENTIFICATION] = CompanyIdentification.model_validate(company)
    if details is not None:
        context.outputs[PROSPECT_DETAILS] = ProspectDetails.model_validate(details)
    return context


def test_combine_prospect_merges_and_dedupes():
    context = _context(
        company={"companyName": "  Acme Corp ", "industryKeywords": ["Anvils", "anvils", ""]},
        details={
            "people": [{"name": "Jane Doe", "role": " "}, {"name": "jane doe"}, {"name": ""}],
            "emails": ["jane@acme.com", "JANE@acme.com", " ", "sales@acme.com"],
            "links": [],
        },
    )

    prospect = combine_prospect(context)

    assert prospect.company_name == "Acme Corp"
    assert prospect.people == [PersonContact(name="Jane Doe", role=None)]
    assert prospect.emails == ["jane@acme.com", "sales@acme.com"]
    assert prospect.industry_keywords == ["Anvils"]


def test_filter_persistable_drops_empty_prospects():
    empty = combine_prospect(_context(company={"companyName": "   "}, details={"links": ["https://x.test"]}))
    named = ExtractedProspectData(company_name="Acme Corp")
    person_only = ExtractedProspectData(people=[PersonContact(name="Jane Doe")])
    email_only = ExtractedProspectData(emails=["jane@acme.com"])

    assert filter_persistable([empty, named, person_only, email_only]) == [named, person_only, email_only]
    assert filter_persistable([ExtractedProspectData()]) == []


def test_build_summary_prefers_company_summary():
    with_summary = _context(company={"companySummary": "Acme builds anvils."})
    without_summary = _context(company={"companyName": "Acme Corp"})

    assert build_summary(with_summary, 1) == "Acme builds anvils."
    assert build_summary(without_summary, 1) == FALLBACK_SUMMARY
    assert build_summary(with_summary, 0) == EMPTY_SUMMARY
