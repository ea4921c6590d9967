"""
Secret and deployment-value lookup.

Every value comes from an environment variable. Getters are cached so each
variable is read once per process.
"""

import os
from functools import lru_cache
from typing import Optional


class MissingSecretError(RuntimeError):
    """Raised when a required environment variable is not set."""


def _require(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise MissingSecretError(f"Environment variable {name} is not set")
    return value


@lru_cache
def get_gemini_api_key() -> str:
    return _require("GEMINI_API_KEY")


@lru_cache
def get_perplexity_api_key() -> str:
    return _require("PERPLEXITY_API_KEY")


@lru_cache
def get_google_credentials_path() -> str:
    """Path to the service-account JSON used for Drive and Vision."""
    return _require("GOOGLE_APPLICATION_CREDENTIALS")


@lru_cache
def get_shopify_store_url() -> str:
    """Store domain without scheme, e.g. my-shop.myshopify.com."""
    url = _require("SHOPIFY_STORE_URL")
    return url.replace("https://", "").replace("http://", "").rstrip("/")


@lru_cache
def get_shopify_access_token() -> str:
    return _require("SHOPIFY_ACCESS_TOKEN")


@lru_cache
def get_telegram_bot_key() -> str:
    return _require("TELEGRAM_BOT_KEY")


@lru_cache
def get_telegram_user_id() -> str:
    return _require("TELEGRAM_USER_ID")


def get_drive_root_folder_id(product_type_key: str) -> Optional[str]:
    """Drive folder id holding product folders of one type, e.g. GOOGLE_DRIVE_DTF_FOLDER_ID."""
    return os.environ.get(f"GOOGLE_DRIVE_{product_type_key.upper()}_FOLDER_ID")
