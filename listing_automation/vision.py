"""
Image analysis with Google Cloud Vision.

Extracts the facts the content generator writes from: labels, dominant
colours, printed text and logos.
"""

from functools import lru_cache
from typing import Dict, List

from google.cloud import vision

from listing_automation.constants import (
    VISION_COLORS_PER_IMAGE,
    VISION_LABEL_MIN_SCORE,
    VISION_MAX_COLORS,
    VISION_MAX_LABELS,
    VISION_PRIMARY_SUBJECTS,
)
from listing_automation.models import DominantColor, DriveImage, VisionAnalysis
from util.logging_util import setup_logger

logger = setup_logger(__name__)


class VisionAPIError(RuntimeError):
    """Raised when the Vision API reports an error for an image."""


@lru_cache
def get_vision_client() -> vision.ImageAnnotatorClient:
    return vision.ImageAnnotatorClient()


def _features() -> List[dict]:
    return [
        {"type_": vision.Feature.Type.LABEL_DETECTION, "max_results": VISION_MAX_LABELS},
        {"type_": vision.Feature.Type.IMAGE_PROPERTIES},
        {"type_": vision.Feature.Type.TEXT_DETECTION},
        {"type_": vision.Feature.Type.LOGO_DETECTION},
    ]


def _to_dominant_color(color_info) -> DominantColor:
    red = int(color_info.color.red or 0)
    green = int(color_info.color.green or 0)
    blue = int(color_info.color.blue or 0)
    return DominantColor(
        color=f"rgb({red}, {green}, {blue})",
        hex=f"#{red:02x}{green:02x}{blue:02x}",
        score=float(color_info.score or 0),
    )


def analyze_product_images(images: List[DriveImage], sku: str) -> VisionAnalysis:
    """Run label, colour, text and logo detection over all product images.

    Labels above the score cutoff are lowercased and deduplicated in the order
    first seen. Colours are deduplicated by hex (keeping the best score) and the
    top ones overall are kept.
    """
    logger.info(f"Analyzing {len(images)} images for {sku}")
    client = get_vision_client()

    labels: List[str] = []
    colors_by_hex: Dict[str, DominantColor] = {}
    detected_text: List[str] = []
    logos: List[str] = []

    for image in images:
        response = client.annotate_image(
            {"image": {"content": image.content}, "features": _features()}
        )
        if response.error.message:
            raise VisionAPIError(f"Vision API error for {image.name}: {response.error.message}")

        for label in response.label_annotations:
            description = label.description.lower()
            if description and label.score > VISION_LABEL_MIN_SCORE and description not in labels:
                labels.append(description)

        for color_info in list(response.image_properties_annotation.dominant_colors.colors)[:VISION_COLORS_PER_IMAGE]:
            color = _to_dominant_color(color_info)
            existing = colors_by_hex.get(color.hex)
            if existing is None or color.score > existing.score:
                colors_by_hex[color.hex] = color

        # The first text annotation holds the full text of the image
        if response.text_annotations:
            for line in response.text_annotations[0].description.split("\n"):
                line = line.strip()
                if line and line not in detected_text:
                    detected_text.append(line)

        for logo in response.logo_annotations:
            if logo.description and logo.description not in logos:
                logos.append(logo.description)

    dominant_colors = sorted(colors_by_hex.values(), key=lambda c: c.score, reverse=True)[:VISION_MAX_COLORS]

    analysis = VisionAnalysis(
        labels=labels,
        dominant_colors=dominant_colors,
        detected_text=detected_text,
        logos=logos,
        primary_subjects=labels[:VISION_PRIMARY_SUBJECTS],
    )
    logger.info(
        f"Vision analysis for {sku}: {len(labels)} labels, {len(dominant_colors)} colors, "
        f"{len(detected_text)} text lines, {len(logos)} logos"
    )
    return analysis
