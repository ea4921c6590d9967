"""
LLM-generated listing copy: title, description and SEO metadata.
"""

import json
import re
from typing import List, Optional

from listing_automation.constants import (
    FALLBACK_TITLE_TEXT_LENGTH,
    MAX_META_DESCRIPTION_LENGTH,
    META_TRUNCATE_LENGTH,
    PROMPTS_DIR,
    SEO_DESCRIPTION_EXCERPT_LENGTH,
    SEO_FALLBACK_TITLE_LENGTH,
)
from listing_automation.models import SeoResult
from llm.llm_util import get_llm_response, parse_json_response
from util.logging_util import setup_logger

logger = setup_logger(__name__)

GENERATE_TITLE_TEMPLATE = PROMPTS_DIR / "generate_title.jinja2"
GENERATE_DESCRIPTION_TEMPLATE = PROMPTS_DIR / "generate_description.jinja2"
OPTIMIZE_SEO_TEMPLATE = PROMPTS_DIR / "optimize_seo.jinja2"

_NUMBER_RE = re.compile(r"^\d+$")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_title(raw: str) -> str:
    """Strip surrounding quotes/backticks and collapse whitespace to single spaces."""
    title = raw.strip()
    title = re.sub(r"^[\"'`]", "", title)
    title = re.sub(r"[\"'`]$", "", title)
    return _WHITESPACE_RE.sub(" ", title).strip()


def fallback_title(detected_text: List[str], collection_theme: str, title_suffix: str) -> str:
    """Title from the design text alone: pure numbers and short fragments are dropped."""
    meaningful = [t for t in detected_text if not _NUMBER_RE.match(t) and len(t) > 2]
    text = " ".join(meaningful)[:FALLBACK_TITLE_TEXT_LENGTH]
    return f"{text} {collection_theme} {title_suffix}".strip()


def generate_title(
    detected_text: List[str],
    visual_labels: List[str],
    collection_theme: str,
    product_type: str,
    title_suffix: str,
) -> str:
    response = get_llm_response(
        str(GENERATE_TITLE_TEMPLATE),
        {
            "detected_text": detected_text,
            "visual_labels": visual_labels,
            "collection_theme": collection_theme,
            "product_type": product_type,
            "title_suffix": title_suffix,
        },
        temperature=0.5,
    )
    title = clean_title(response)
    if not title:
        logger.warning("Empty title from LLM, using fallback")
        title = fallback_title(detected_text, collection_theme, title_suffix)

    logger.info(f"Generated title ({len(title)} chars): {title}")
    return title


def generate_description(
    sku: str,
    collection: str,
    design_elements: List[str],
    colors: List[str],
    detected_text: str,
    trends: str,
    creative_angles: Optional[List[str]] = None,
) -> str:
    """Write a 150-250 word product description. LLM errors propagate."""
    response = get_llm_response(
        str(GENERATE_DESCRIPTION_TEMPLATE),
        {
            "sku": sku,
            "collection": collection,
            "design_elements": design_elements,
            "colors": colors,
            "detected_text": detected_text,
            "trends": trends,
            "creative_angles": creative_angles or [],
        },
        temperature=0.9,
    )
    description = response.strip()
    logger.info(f"Generated description for {sku} ({len(description)} chars)")
    return description


def truncate_meta_description(meta_description: str) -> str:
    if len(meta_description) > MAX_META_DESCRIPTION_LENGTH:
        return meta_description[:META_TRUNCATE_LENGTH] + "..."
    return meta_description


def fallback_seo(product_title: str, visual_features: List[str], theme: str) -> SeoResult:
    return SeoResult(
        meta_description=f"{product_title[:SEO_FALLBACK_TITLE_LENGTH]} - Shop now!",
        search_keywords=list(visual_features[:5]),
        suggested_tags=list(visual_features) + [theme],
    )


def optimize_seo(
    product_title: str,
    description: str,
    visual_features: List[str],
    theme: str,
    target_audience: Optional[str] = None,
) -> SeoResult:
    """
    Generate a meta description, search keywords and extra tags.

    Falls back to a basic result built from the title and visual features when
    the LLM call fails or its answer is not the expected JSON.
    """
    try:
        response = get_llm_response(
            str(OPTIMIZE_SEO_TEMPLATE),
            {
                "product_title": product_title,
                "description": description[:SEO_DESCRIPTION_EXCERPT_LENGTH],
                "visual_features": visual_features,
                "theme": theme,
                "target_audience": target_audience or "",
            },
        )
        result = parse_json_response(response)
        seo = SeoResult(
            meta_description=truncate_meta_description(str(result["meta_description"])),
            search_keywords=list(result.get("search_keywords") or []),
            suggested_tags=list(result.get("suggested_tags") or []),
        )
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        logger.error(f"Failed to parse SEO response, using fallback: {e}")
        return fallback_seo(product_title, visual_features, theme)
    except Exception as e:
        logger.error(f"SEO optimization failed, using fallback: {e}")
        return fallback_seo(product_title, visual_features, theme)

    logger.info(
        f"SEO optimized: meta={len(seo.meta_description)} chars, "
        f"{len(seo.search_keywords)} keywords, {len(seo.suggested_tags)} tags"
    )
    return seo
