"""Structured-output contracts for the language-model agents."""

from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class ExtractedContent(CamelModel):
    """Content extraction agent: main article text of a page."""

    main_content: str = Field(
        default="",
        description="The extracted main article text, with scripts, styles, ads and navigation removed.",
    )


class CompanyIdentification(CamelModel):
    """Agent A of the prospect chain."""

    company_name: Optional[str] = Field(default=None, description="The name of the company the page belongs to.")
    industry_summary: str = Field(default="", description="One or two sentences describing the company's industry.")
    company_summary: str = Field(default="", description="A short summary of what the company does.")
    industry_keywords: List[str] = Field(default_factory=list, description="Keywords describing the company's business.")


class PersonContact(CamelModel):
    name: str
    role: Optional[str] = None


class ProspectDetails(CamelModel):
    """Agent B of the prospect chain."""

    people: List[PersonContact] = Field(default_factory=list, description="Contact persons found, with roles if available.")
    emails: List[str] = Field(default_factory=list, description="Email addresses found on the page.")
    links: List[str] = Field(default_factory=list, description="Relevant LinkedIn, Twitter or contact links.")


class CompetitorReport(CamelModel):
    """Single agent of the competitor analysis chain."""

    key_topics: List[str] = Field(description="Main topics and keywords the article is optimized for.")
    content_grade: str = Field(description="Overall grade (A-F) assessing readability, structure and SEO.")
    content_gaps: List[str] = Field(description="Related sub-topics the article failed to cover.")
    tone_analysis: str = Field(description="Summary of the article's tone and writing style.")
