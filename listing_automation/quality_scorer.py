"""
Quality scoring for generated listings.

Four sub-scores start at 100 and lose fixed penalties as issues are found.
Their mean is blended with the collection match confidence into an overall
confidence, which the configured thresholds turn into a disposition.
"""

from typing import List, Optional, Sequence, Set

from listing_automation.collection_matcher import round_half_up
from listing_automation.constants import (
    DESCRIPTION_PENALTY,
    FEW_TAGS_PENALTY,
    GENERIC_PHRASES,
    GENERIC_PHRASES_PENALTY,
    HIGH_SIMILARITY_PENALTY,
    HIGH_SIMILARITY_RATIO,
    LONG_DESCRIPTION_PENALTY,
    LOW_MATCH_CONFIDENCE,
    LOW_MATCH_PENALTY,
    MATCH_CONFIDENCE_WEIGHT,
    MAX_DESCRIPTION_LENGTH,
    MAX_GENERIC_PHRASES,
    MAX_META_DESCRIPTION_LENGTH,
    META_TOO_LONG_PENALTY,
    META_TOO_SHORT_PENALTY,
    MIN_DESCRIPTION_LENGTH,
    MIN_META_DESCRIPTION_LENGTH,
    MIN_TAG_COUNT,
    MIN_TITLE_LENGTH,
    MODERATE_SIMILARITY_PENALTY,
    MODERATE_SIMILARITY_RATIO,
    NO_IMAGES_PENALTY,
    NO_VARIANTS_PENALTY,
    SIMILARITY_WORD_MIN_LENGTH,
    SUBSCORE_WEIGHT,
    TITLE_PENALTY,
)
from listing_automation.models import (
    ConfidenceThresholds,
    Disposition,
    QualityIssue,
    QualityReport,
    QualityScores,
    Severity,
)
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def _words(text: str) -> Set[str]:
    return set(text.lower().split())


def description_similarity(current: str, recent: str) -> float:
    """Share of long words the two descriptions have in common.

    Shared words longer than 5 characters are counted against the smaller of
    the two word sets. Empty text has similarity 0.
    """
    current_words = _words(current)
    recent_words = _words(recent)
    smaller = min(len(current_words), len(recent_words))
    if smaller == 0:
        return 0.0
    common = [w for w in current_words if w in recent_words and len(w) >= SIMILARITY_WORD_MIN_LENGTH]
    return len(common) / smaller


def find_generic_phrases(description: str) -> List[str]:
    description_lower = description.lower()
    return [phrase for phrase in GENERIC_PHRASES if phrase in description_lower]


def determine_disposition(overall_confidence: int, thresholds: ConfidenceThresholds) -> Disposition:
    """Map an overall confidence to a disposition. Thresholds are inclusive."""
    if overall_confidence >= thresholds.auto_publish:
        return Disposition.AUTO_PUBLISH
    if overall_confidence >= thresholds.quarantine:
        return Disposition.REVIEW
    return Disposition.REJECT


class _ScoringPass:
    """Accumulates issues and penalties for one listing."""

    def __init__(self):
        self.scores = QualityScores()
        self.issues: List[QualityIssue] = []

    def penalize(self, sub_score: str, penalty: int, severity: Severity, category: str, message: str):
        self.issues.append(QualityIssue(severity=severity, category=category, message=message))
        current = getattr(self.scores, sub_score)
        setattr(self.scores, sub_score, max(0, current - penalty))


class QualityScorer:
    """Scores generated listings against the configured thresholds."""

    def __init__(self, thresholds: Optional[ConfidenceThresholds] = None):
        self.thresholds = thresholds or ConfidenceThresholds()

    def _check_completeness(self, p: _ScoringPass, title, description, has_images, variant_count):
        if not title or len(title) < MIN_TITLE_LENGTH:
            p.penalize("completeness", TITLE_PENALTY, Severity.CRITICAL, "completeness",
                       "Title too short or missing")
        if not description or len(description) < MIN_DESCRIPTION_LENGTH:
            p.penalize("completeness", DESCRIPTION_PENALTY, Severity.CRITICAL, "completeness",
                       "Description too short")
        if not has_images:
            p.penalize("completeness", NO_IMAGES_PENALTY, Severity.CRITICAL, "completeness",
                       "No product images")
        if not variant_count:
            p.penalize("completeness", NO_VARIANTS_PENALTY, Severity.WARNING, "completeness",
                       "No variants defined")

    def _check_seo(self, p: _ScoringPass, meta_description: str, tags: Sequence[str]):
        if len(meta_description) > MAX_META_DESCRIPTION_LENGTH:
            p.penalize("seo_readiness", META_TOO_LONG_PENALTY, Severity.WARNING, "seo",
                       "Meta description too long")
        if len(meta_description) < MIN_META_DESCRIPTION_LENGTH:
            p.penalize("seo_readiness", META_TOO_SHORT_PENALTY, Severity.INFO, "seo",
                       "Meta description could be longer for better SEO")
        if len(tags) < MIN_TAG_COUNT:
            p.penalize("seo_readiness", FEW_TAGS_PENALTY, Severity.WARNING, "seo",
                       "Insufficient tags for discoverability")

    def _check_content(self, p: _ScoringPass, description: str):
        found_generic = find_generic_phrases(description)
        if len(found_generic) > MAX_GENERIC_PHRASES:
            p.penalize("content_quality", GENERIC_PHRASES_PENALTY, Severity.WARNING, "content_quality",
                       f"Overuse of generic phrases: {', '.join(found_generic)}")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            p.penalize("content_quality", LONG_DESCRIPTION_PENALTY, Severity.INFO, "content_quality",
                       "Description might be too long for mobile users")

    def _check_uniqueness(self, p: _ScoringPass, description: str, recent_descriptions: Sequence[str]):
        moderate_overlap = False
        for recent in recent_descriptions:
            similarity = description_similarity(description, recent)
            if similarity > HIGH_SIMILARITY_RATIO:
                p.penalize("uniqueness", HIGH_SIMILARITY_PENALTY, Severity.WARNING, "uniqueness",
                           f"Description too similar to recent product ({round_half_up(similarity * 100)}% overlap)")
                return
            if similarity > MODERATE_SIMILARITY_RATIO:
                moderate_overlap = True

        if moderate_overlap:
            p.penalize("uniqueness", MODERATE_SIMILARITY_PENALTY, Severity.INFO, "uniqueness",
                       "Some phrases repeated from recent products")

    def _check_categorization(self, p: _ScoringPass, collection_match_confidence: float):
        if collection_match_confidence < LOW_MATCH_CONFIDENCE:
            p.penalize("content_quality", LOW_MATCH_PENALTY, Severity.WARNING, "categorization",
                       "Low collection matching confidence")

    def score(
        self,
        title: Optional[str],
        description: Optional[str],
        meta_description: Optional[str],
        tags: Optional[Sequence[str]],
        collection_match_confidence: Optional[float],
        has_images: bool,
        variant_count: Optional[int],
        recent_descriptions: Optional[Sequence[str]] = None,
    ) -> QualityReport:
        """
        Score a generated listing.

        Missing (None) fields count as empty and trigger the matching
        penalties rather than raising.

        Returns:
            QualityReport with the overall confidence, disposition, issues
            and the four sub-scores.
        """
        description = description or ""
        meta_description = meta_description or ""
        tags = tags or []
        match_confidence = collection_match_confidence or 0

        p = _ScoringPass()
        self._check_completeness(p, title, description, has_images, variant_count)
        self._check_seo(p, meta_description, tags)
        self._check_content(p, description)
        self._check_uniqueness(p, description, recent_descriptions or [])
        self._check_categorization(p, match_confidence)

        avg_score = p.scores.average()
        overall_confidence = round_half_up(avg_score * SUBSCORE_WEIGHT + match_confidence * MATCH_CONFIDENCE_WEIGHT)
        overall_confidence = max(0, min(100, overall_confidence))
        status = determine_disposition(overall_confidence, self.thresholds)

        logger.info(
            f"Quality check for '{(title or '')[:50]}': confidence={overall_confidence}, "
            f"status={status.value}, issues={len(p.issues)}"
        )
        return QualityReport(
            overall_confidence=overall_confidence,
            status=status,
            issues=p.issues,
            quality_scores=p.scores,
        )
