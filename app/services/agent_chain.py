"""
Agent chain executor and the two chains of this service.

An agent is one structured-output model call. Agents in a chain run strictly
in order; each one sees the normalized page text plus every structured output
produced earlier in the same run through an AgentChainContext.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Type

from pydantic import BaseModel

from app.errors import AgentFailed, ConfigurationError
from app.schemas.agents import CompanyIdentification, CompetitorReport, ProspectDetails
from app.services.llm_client import StructuredModel

logger = logging.getLogger(__name__)


@dataclass
class AgentChainContext:
    """Per-run state: the normalized text and outputs keyed by agent name."""

    text: str
    outputs: Dict[str, BaseModel] = field(default_factory=dict)

    def output(self, agent_name: str) -> Optional[BaseModel]:
        return self.outputs.get(agent_name)


@dataclass(frozen=True)
class Agent:
    name: str
    instructions: str
    schema: Type[BaseModel]
    build_prompt: Callable[[AgentChainContext], str]


@dataclass(frozen=True)
class AgentChain:
    name: str
    agents: Sequence[Agent]
    # Fail before any model call when the normalized text is empty
    require_content: bool = False


class AgentChainExecutor:
    """Run a chain against a structured-output model, one agent at a time."""

    def __init__(self, model: StructuredModel):
        self.model = model

    async def run(self, chain: AgentChain, text: str) -> AgentChainContext:
        context = AgentChainContext(text=text)
        for agent in chain.agents:
            logger.info("Chain %s: running agent %s", chain.name, agent.name)
            prompt = agent.build_prompt(context)
            try:
                output = await self.model.generate(
                    name=agent.name,
                    instructions=agent.instructions,
                    prompt=prompt,
                    schema=agent.schema,
                )
            except ConfigurationError:
                raise
            except AgentFailed:
                logger.error("Chain %s: agent %s failed", chain.name, agent.name)
                raise
            except Exception as exc:  # noqa: BLE001
                logger.error("Chain %s: agent %s raised %s", chain.name, agent.name, exc)
                raise AgentFailed(agent.name, str(exc)) from exc
            if output is None:
                raise AgentFailed(agent.name, "no output")
            context.outputs[agent.name] = output
        return context


# ---------------------------------------------------------------------------
# Prospect extraction chain
# ---------------------------------------------------------------------------

COMPANY_IDENTIFICATION = "company_identification"
PROSPECT_DETAILS = "prospect_details"
COMPETITOR_REPORT = "competitor_report"


def _company_identification_prompt(context: AgentChainContext) -> str:
    return (
        "Identify the company this web page belongs to.\n"
        "Return its name (omit it if the page does not name a company), a one or two sentence "
        "industry summary, a short company summary and a few industry keywords.\n\n"
        "Page text:\n---\n"
        f"{context.text}\n---"
    )


def _prospect_details_prompt(context: AgentChainContext) -> str:
    company = context.output(COMPANY_IDENTIFICATION)
    company_name = getattr(company, "company_name", None) or "Unknown"
    company_summary = getattr(company, "company_summary", "") or "Not available"
    return (
        f"Company: {company_name}\n"
        f"Company summary: {company_summary}\n\n"
        "From the page text below, extract the people who work for or represent this company "
        "(with their role when stated), every email address, and relevant LinkedIn, Twitter or "
        "contact page links. Return empty lists when nothing is found.\n\n"
        "Page text:\n---\n"
        f"{context.text}\n---"
    )


PROSPECT_EXTRACTION_CHAIN = AgentChain(
    name="prospect_extraction",
    agents=(
        Agent(
            name=COMPANY_IDENTIFICATION,
            instructions="You are an expert business analyst identifying companies from their web pages.",
            schema=CompanyIdentification,
            build_prompt=_company_identification_prompt,
        ),
        Agent(
            name=PROSPECT_DETAILS,
            instructions="You are an expert data extraction agent finding sales prospects on web pages.",
            schema=ProspectDetails,
            build_prompt=_prospect_details_prompt,
        ),
    ),
    require_content=False,
)


# ---------------------------------------------------------------------------
# Competitor analysis chain
# ---------------------------------------------------------------------------

def _competitor_report_prompt(context: AgentChainContext) -> str:
    return (
        'Analyze the following article text and create a "Competitor Report Card":\n'
        "1. Key Topics: the primary topics and keywords the article targets.\n"
        "2. Content Grade: an overall grade from A to F based on readability and structure.\n"
        "3. Content Gaps: 3-5 related, important sub-topics the author missed.\n"
        "4. Tone Analysis: the writing style and tone of the article.\n\n"
        "Article text to analyze:\n---\n"
        f"{context.text}\n---"
    )


COMPETITOR_ANALYSIS_CHAIN = AgentChain(
    name="competitor_analysis",
    agents=(
        Agent(
            name=COMPETITOR_REPORT,
            instructions="You are a world-class SEO analyst and content strategist.",
            schema=CompetitorReport,
            build_prompt=_competitor_report_prompt,
        ),
    ),
    require_content=True,
)
