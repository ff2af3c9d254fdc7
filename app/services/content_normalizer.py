"""
HTML -> clean text normalization.

Boilerplate markup is stripped with BeautifulSoup, then (by default) a
content-extraction agent reduces the page to its main article text.
Extraction failures degrade to an empty string; callers decide whether
empty content is fatal. The cost cap is applied afterwards by `truncate`.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from app.core.config import settings
from app.errors import ConfigurationError
from app.schemas.agents import ExtractedContent
from app.services.llm_client import StructuredModel

logger = logging.getLogger(__name__)

CONTENT_EXTRACTION = "content_extraction"

BOILERPLATE_TAGS = ["script", "style", "noscript", "nav", "footer", "aside", "header", "iframe", "svg"]
BOILERPLATE_SELECTORS = ".ad, .advertisement, .sidebar, .menu, .ad-container"


def strip_markup(html: str) -> str:
    """Remove non-content elements and return whitespace-collapsed text."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(BOILERPLATE_TAGS):
        tag.decompose()
    for node in soup.select(BOILERPLATE_SELECTORS):
        node.decompose()

    root = soup.body or soup
    text = root.get_text("\n", strip=True)
    text = re.sub(r"[\t ]+", " ", text)
    text = re.sub(r"\n{2,}", "\n", text)
    return text.strip()


def truncate(text: str, limit: Optional[int] = None) -> str:
    """Apply the character cap used for model cost control."""
    max_chars = settings.MAX_INPUT_CHARACTERS if limit is None else limit
    if len(text) <= max_chars:
        return text
    logger.info("Truncated content from %d to %d characters", len(text), max_chars)
    return text[:max_chars]


class ContentNormalizer:
    """Turn raw page HTML into clean natural-language text."""

    INSTRUCTIONS = (
        "You are an expert at parsing web pages. From the following page content, extract only "
        "the main article text, including headings and paragraphs. Remove navigation, footers, "
        "advertisements and any leftover markup. Return only the clean, readable text."
    )

    def __init__(self, model: Optional[StructuredModel] = None, *, use_ai: Optional[bool] = None):
        self.model = model
        self.use_ai = settings.NORMALIZER_USE_AI if use_ai is None else use_ai

    async def normalize(self, html: str) -> str:
        if not html:
            return ""

        cleaned = strip_markup(html)
        if not self.use_ai or self.model is None or not cleaned:
            return cleaned

        try:
            output = await self.model.generate(
                name=CONTENT_EXTRACTION,
                instructions=self.INSTRUCTIONS,
                prompt=cleaned,
                schema=ExtractedContent,
            )
        except ConfigurationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Error during text extraction: %s", exc)
            return ""

        return (getattr(output, "main_content", "") or "").strip()
