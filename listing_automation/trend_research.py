"""
Market trend research through the Perplexity chat-completions API.

The answer is free text; trends, keywords and creative angles are picked out
line by line. Research is optional context, so any failure returns a fallback
built from the image subjects instead of raising.
"""

import re
from typing import List, Optional

import requests

from listing_automation.constants import (
    PERPLEXITY_API_URL,
    PERPLEXITY_MODEL,
    PERPLEXITY_TIMEOUT_SECONDS,
    TREND_CONTEXT_MAX_LENGTH,
    TREND_MAX_KEYWORDS,
)
from listing_automation.models import TrendResearch
from util.logging_util import setup_logger
from util.secrets import get_perplexity_api_key

logger = setup_logger(__name__)

SYSTEM_PROMPT = (
    "You are a market research expert specializing in product trends and SEO. "
    "Provide concise, actionable insights about current trends and terminology."
)

_BULLET_RE = re.compile(r"^[-•*]\s*")
_QUOTED_RE = re.compile(r"[\"']([^\"']+)[\"']")


def build_research_query(primary_subjects: List[str], product_type: str, detected_text: Optional[List[str]] = None) -> str:
    subjects = ", ".join(primary_subjects)
    text_context = f' with text "{", ".join(detected_text)}"' if detected_text else ""
    return (
        f"What are current trends, popular terminology, and market positioning for {product_type} "
        f"products featuring {subjects}{text_context}? Focus on: 1) Trending keywords people use "
        f"when searching, 2) Popular design styles, 3) Target audience preferences, "
        f"4) Unique selling angles."
    )


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def parse_research_text(research_text: str, primary_subjects: List[str], product_type: str) -> TrendResearch:
    """Pick trends, quoted keywords and creative angles out of a research answer.

    Each line lands in at most one bucket, checked in that order.
    """
    trends = []
    keywords = []
    creative_angles = []

    for line in research_text.split("\n"):
        if not line.strip():
            continue
        lower = line.lower()
        if "trend" in lower or "popular" in lower or "growing" in lower:
            trends.append(_BULLET_RE.sub("", line).strip())
        elif "keyword" in lower or "search" in lower or "term" in lower:
            keywords.extend(_QUOTED_RE.findall(line))
        elif "angle" in lower or "positioning" in lower or "appeal" in lower:
            creative_angles.append(_BULLET_RE.sub("", line).strip())

    if len(keywords) < 3:
        keywords.extend(s.lower() for s in primary_subjects)

    subjects = ", ".join(primary_subjects)
    if not trends:
        trends = [f"{subjects} designs are popular for {product_type} products"]
    if not creative_angles:
        creative_angles = [
            f"Perfect for {subjects} enthusiasts",
            f"Unique {subjects} design",
            f"Trending {subjects} style",
        ]

    return TrendResearch(
        trends=trends,
        keywords=_dedupe(keywords)[:TREND_MAX_KEYWORDS],
        context=research_text[:TREND_CONTEXT_MAX_LENGTH],
        creative_angles=creative_angles,
    )


def fallback_research(primary_subjects: List[str], product_type: str) -> TrendResearch:
    subjects = ", ".join(primary_subjects)
    first_subject = primary_subjects[0] if primary_subjects else product_type
    return TrendResearch(
        trends=[f"{subjects} designs"],
        keywords=[s.lower() for s in primary_subjects],
        context=f"Product featuring {subjects}",
        creative_angles=[
            f"Unique design featuring {first_subject}",
            f"Perfect for {product_type} applications",
        ],
    )


def research_product_trends(
    primary_subjects: List[str],
    product_type: str,
    detected_text: Optional[List[str]] = None,
) -> TrendResearch:
    """Research trends for a product's subjects. Never raises."""
    query = build_research_query(primary_subjects, product_type, detected_text)
    logger.info(f"Researching trends for {product_type}: {', '.join(primary_subjects)}")

    try:
        response = requests.post(
            PERPLEXITY_API_URL,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {get_perplexity_api_key()}",
            },
            json={
                "model": PERPLEXITY_MODEL,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": query},
                ],
                "temperature": 0.3,
                "max_tokens": 500,
            },
            timeout=PERPLEXITY_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        choices = response.json().get("choices") or [{}]
        research_text = (choices[0].get("message") or {}).get("content") or ""
    except Exception as e:
        logger.error(f"Trend research failed, using fallback: {e}")
        return fallback_research(primary_subjects, product_type)

    logger.info(f"Trend research returned {len(research_text)} characters")
    return parse_research_text(research_text, primary_subjects, product_type)
