"""
Constants for the listing automation pipeline.
"""

from pathlib import Path

MODULE_ROOT = Path(__file__).parent

PROMPTS_DIR = MODULE_ROOT / "prompts"

STORE_CONFIG_PATH = MODULE_ROOT / "data" / "store_config.yaml"

DB_NAME = "listing_automation.db"

# How often the automation runs (in seconds)
SCAN_INTERVAL_SECONDS = 2 * 60 * 60  # 2 hours

# Seconds between due-checks in the polling loop
POLL_SLEEP_SECONDS = 60

# New folders handled per run
MAX_PRODUCTS_PER_RUN = 5

# Recent descriptions compared for anti-repetition
RECENT_DESCRIPTIONS_LIMIT = 50

# Collection matching
MIN_FOLDER_HINT_LENGTH = 3
CHANNEL_TAG_PREFIX = "channel:"
CHANNEL_MATCH_BONUS = 2
FALLBACK_MATCH_CONFIDENCE = 30
REASONING_KEYWORD_LIMIT = 3

# Default disposition thresholds
DEFAULT_AUTO_PUBLISH_THRESHOLD = 75
DEFAULT_QUARANTINE_THRESHOLD = 60
DEFAULT_REJECT_THRESHOLD = 60

# Quality scoring limits
MIN_TITLE_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_META_DESCRIPTION_LENGTH = 120
MAX_META_DESCRIPTION_LENGTH = 160
MIN_TAG_COUNT = 3
MAX_GENERIC_PHRASES = 2
LOW_MATCH_CONFIDENCE = 70

# Quality penalties
TITLE_PENALTY = 30
DESCRIPTION_PENALTY = 30
NO_IMAGES_PENALTY = 40
NO_VARIANTS_PENALTY = 20
META_TOO_LONG_PENALTY = 15
META_TOO_SHORT_PENALTY = 5
FEW_TAGS_PENALTY = 15
GENERIC_PHRASES_PENALTY = 20
LONG_DESCRIPTION_PENALTY = 5
LOW_MATCH_PENALTY = 15
HIGH_SIMILARITY_PENALTY = 30
MODERATE_SIMILARITY_PENALTY = 10

# Anti-repetition
SIMILARITY_WORD_MIN_LENGTH = 6
HIGH_SIMILARITY_RATIO = 0.6
MODERATE_SIMILARITY_RATIO = 0.4

# Weight of the averaged sub-scores; the match confidence gets the rest
SUBSCORE_WEIGHT = 0.7
MATCH_CONFIDENCE_WEIGHT = 0.3

GENERIC_PHRASES = (
    "perfect for",
    "great gift",
    "high quality",
    "premium quality",
    "best choice",
    "don't miss out",
    "limited time",
)

# Vision
VISION_LABEL_MIN_SCORE = 0.6
VISION_MAX_LABELS = 20
VISION_COLORS_PER_IMAGE = 5
VISION_MAX_COLORS = 5
VISION_PRIMARY_SUBJECTS = 5

# Perplexity
PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"
PERPLEXITY_MODEL = "sonar"
PERPLEXITY_TIMEOUT_SECONDS = 60
TREND_CONTEXT_MAX_LENGTH = 500
TREND_MAX_KEYWORDS = 10

# SEO
META_TRUNCATE_LENGTH = 157

# Shopify
SHOPIFY_API_VERSION = "2024-10"
SHOPIFY_TIMEOUT_SECONDS = 30
SHOPIFY_PAGE_LIMIT = 250
SHOPIFY_MAX_RETRIES = 3
SHOPIFY_DEFAULT_RETRY_AFTER = 2
SHOPIFY_SAMPLE_VARIANT_SCAN = 50
SHOPIFY_SAMPLE_VARIANT_LIMIT = 20

# Google Drive
DRIVE_FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DRIVE_DONE_FOLDER_NAME = "Done"
GOOGLE_DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]

# Content generation
TITLE_SUFFIXES = {"DTF": "DTF Transfer", "POD": "Shirt"}
FALLBACK_TITLE_TEXT_LENGTH = 30
SEO_DESCRIPTION_EXCERPT_LENGTH = 500
SEO_FALLBACK_TITLE_LENGTH = 140
