"""Tests for Telegram notifications."""

from unittest.mock import patch

from telegram_bot.messaging import format_review_message, send_message_to_me


class TestFormatReviewMessage:
    def test_lists_issues(self):
        message = format_review_message(
            "Cat Nap DTF Transfer",
            "DTF Design/Cat-Nap",
            71,
            [{"severity": "warning", "message": "Description similar to recent product"}],
        )

        assert message.splitlines() == [
            "Listing needs review",
            "Title: Cat Nap DTF Transfer",
            "Folder: DTF Design/Cat-Nap",
            "Confidence: 71%",
            "Issues:",
            "- [warning] Description similar to recent product",
        ]

    def test_without_issues(self):
        message = format_review_message("Title", "DTF Design/x", 80, [])

        assert "Issues:" not in message


class TestSendMessageToMe:
    @patch("telegram_bot.messaging.get_telegram_user_id", return_value="42")
    @patch("telegram_bot.messaging.get_telegram_bot_key", return_value="bot-key")
    @patch("telegram_bot.messaging.requests.post")
    def test_posts_to_bot(self, mock_post, _key, _user):
        send_message_to_me("hello")

        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.telegram.org/botbot-key/sendMessage"
        assert kwargs["json"] == {"chat_id": "42", "text": "hello"}
