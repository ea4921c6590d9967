"""
Keyword-based matching of products to storefront collections.

Only collections from the configured catalog are ever returned. Every
product lands in some collection: when nothing matches, a low-confidence
fallback is used so the listing is routed to review.
"""

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from listing_automation.constants import (
    CHANNEL_MATCH_BONUS,
    CHANNEL_TAG_PREFIX,
    FALLBACK_MATCH_CONFIDENCE,
    MIN_FOLDER_HINT_LENGTH,
    REASONING_KEYWORD_LIMIT,
)
from listing_automation.models import Collection, MatchResult
from listing_automation.store_config import ConfigurationError
from util.logging_util import setup_logger

logger = setup_logger(__name__)

_HINT_SPLIT = re.compile(r"[-_\s]+")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def extract_folder_hints(folder_path: str) -> List[str]:
    """Split a folder path into lowercase hint words longer than 2 characters."""
    hints = []
    for part in folder_path.lower().split("/"):
        for word in _HINT_SPLIT.split(part):
            if len(word) >= MIN_FOLDER_HINT_LENGTH:
                hints.append(word)
    return hints


def build_searchable_terms(
    folder_path: str,
    labels: Sequence[str],
    detected_text: Optional[Sequence[str]],
    product_type: str,
) -> List[str]:
    """Combine labels, folder hints, detected text and product type into lowercase terms.

    Empty terms are dropped, since an empty string is contained in every keyword.
    """
    terms = [label.lower() for label in labels]
    terms.extend(extract_folder_hints(folder_path))
    terms.extend(text.lower() for text in (detected_text or []))
    terms.append(product_type.lower())
    return [term.strip() for term in terms if term and term.strip()]


@dataclass
class _CollectionScore:
    collection: Collection
    score: float = 0.0
    matched_keywords: List[str] = field(default_factory=list)


class CollectionMatcher:
    """Scores catalog collections against a product's signals."""

    def __init__(self, collections: Sequence[Collection]):
        if not collections:
            raise ConfigurationError("Collection catalog is empty")
        self.collections = list(collections)

    def _score_collection(
        self,
        collection: Collection,
        terms: List[str],
        folder_path: str,
        product_type: str,
    ) -> _CollectionScore:
        result = _CollectionScore(collection=collection)

        for keyword in collection.keywords:
            keyword_lower = keyword.lower()
            for term in terms:
                # Either direction, to tolerate partial OCR and label noise
                if keyword_lower in term or term in keyword_lower:
                    result.score += collection.boost_score
                    result.matched_keywords.append(keyword)
                    break

        product_type_lower = product_type.lower()
        if product_type_lower and product_type_lower in folder_path.lower():
            for tag in collection.tags_required:
                tag_lower = tag.lower()
                if not tag_lower.startswith(CHANNEL_TAG_PREFIX):
                    continue
                if product_type_lower in tag_lower[len(CHANNEL_TAG_PREFIX):]:
                    result.score += CHANNEL_MATCH_BONUS
                    result.matched_keywords.append(f"{product_type} (channel match)")
                    break

        return result

    def _fallback(self, product_type: str) -> MatchResult:
        product_type_lower = product_type.lower()
        default = self.collections[0]
        if product_type_lower:
            for collection in self.collections:
                if any(product_type_lower in tag.lower() for tag in collection.tags_required):
                    default = collection
                    break

        logger.warning(f"No collection matches found, defaulting to '{default.name}'")
        return MatchResult(
            collection_id=default.id,
            collection_name=default.name,
            tags_required=list(default.tags_required),
            confidence=FALLBACK_MATCH_CONFIDENCE,
            reasoning=f"No strong keyword matches found. Defaulted to {default.name} based on product type.",
            matched_keywords=[],
        )

    def match(
        self,
        folder_path: str,
        labels: Sequence[str],
        detected_text: Optional[Sequence[str]] = None,
        product_type: str = "",
    ) -> MatchResult:
        """
        Pick the best collection for a product.

        Args:
            folder_path: Drive folder path, e.g. "DTF Designs/Baseball-Team-Logo".
            labels: Labels detected by the vision analysis.
            detected_text: Text fragments found in the images.
            product_type: Product type key, e.g. "DTF".

        Returns:
            MatchResult with a 0-100 confidence.
        """
        terms = build_searchable_terms(folder_path, labels, detected_text, product_type)
        logger.debug(f"Searchable terms ({len(terms)}): {terms}")

        scores = [
            self._score_collection(collection, terms, folder_path, product_type)
            for collection in self.collections
        ]
        scores = [s for s in scores if s.score > 0]
        # sort is stable, so catalog order breaks ties
        scores.sort(key=lambda s: s.score, reverse=True)

        for s in scores:
            logger.debug(f"  {s.collection.name}: score={s.score} keywords={s.matched_keywords}")

        if not scores:
            return self._fallback(product_type)

        best = scores[0]
        total_keywords = len(best.collection.keywords)
        matched_count = len(best.matched_keywords)

        if total_keywords:
            confidence = min(100, round_half_up(best.score / total_keywords * 100))
        else:
            # Only the channel bonus can score a collection without keywords
            confidence = 100

        shown = ", ".join(best.matched_keywords[:REASONING_KEYWORD_LIMIT])
        ellipsis = "..." if matched_count > REASONING_KEYWORD_LIMIT else ""
        score_str = f"{best.score:g}"
        reasoning = (
            f"Matched {matched_count} keywords: {shown}{ellipsis}. "
            f"Score: {score_str}/{total_keywords} possible"
        )

        logger.info(f"Best collection match: '{best.collection.name}' (confidence={confidence})")
        return MatchResult(
            collection_id=best.collection.id,
            collection_name=best.collection.name,
            tags_required=list(best.collection.tags_required),
            confidence=confidence,
            reasoning=reasoning,
            matched_keywords=list(best.matched_keywords),
        )
