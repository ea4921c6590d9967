import requests

from util.logging_util import setup_logger
from util.secrets import get_telegram_bot_key, get_telegram_user_id

logger = setup_logger(__name__)


def send_message_to_me(message: str):
    """
    Sends a message to me from my bot
    """

    response_data = {"chat_id": get_telegram_user_id(), "text": message}

    logger.info(f"Sending Telegram message: {message[:100]}")

    requests.post(
        f"https://api.telegram.org/bot{get_telegram_bot_key()}/sendMessage",
        json=response_data,
        timeout=10,
    )


def format_review_message(product_title: str, folder_path: str, confidence: int, issues: list) -> str:
    """Telegram text announcing a listing that needs manual review."""
    lines = [
        "Listing needs review",
        f"Title: {product_title}",
        f"Folder: {folder_path}",
        f"Confidence: {confidence}%",
    ]
    if issues:
        lines.append("Issues:")
        lines.extend(f"- [{issue['severity']}] {issue['message']}" for issue in issues)
    return "\n".join(lines)
