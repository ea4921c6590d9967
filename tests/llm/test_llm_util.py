"""Tests for LLM helpers."""

import json
from unittest.mock import patch

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage

from llm.llm_util import get_llm_response, parse_json_response


class TestParseJsonResponse:
    def test_plain_object(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_code_fence(self):
        assert parse_json_response('```json\n{"tags": ["ems"]}\n```') == {"tags": ["ems"]}

    def test_surrounding_chatter(self):
        response = 'Here is the result: {"meta_description": "Bold"} Hope that helps!'

        assert parse_json_response(response) == {"meta_description": "Bold"}

    def test_no_object_raises(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json_response("no json here")


class TestGetLlmResponse:
    """Tests for template rendering and response extraction."""

    @pytest.fixture
    def template(self, tmp_path):
        path = tmp_path / "prompt.jinja2"
        path.write_text("Write a title about {{ subject }}.")
        return str(path)

    def _run(self, template, message, **kwargs):
        fake_llm = GenericFakeChatModel(messages=iter([message]))
        with patch("llm.llm_util.ChatGoogleGenerativeAI", return_value=fake_llm) as mock_cls, \
             patch("llm.llm_util.get_gemini_api_key", return_value="fake-key"):
            response = get_llm_response(template, {"subject": "ambulances"}, **kwargs)
        return response, mock_cls

    def test_string_content(self, template):
        response, mock_cls = self._run(template, AIMessage(content="EMT Hero"))

        assert response == "EMT Hero"
        assert mock_cls.call_args.kwargs == {"model": "gemini-2.5-flash", "google_api_key": "fake-key"}

    def test_content_parts_are_joined(self, template):
        message = AIMessage(content=[{"type": "text", "text": "EMT "}, {"type": "text", "text": "Hero"}])

        response, _ = self._run(template, message)

        assert response == "EMT Hero"

    def test_temperature_is_passed(self, template):
        _, mock_cls = self._run(template, AIMessage(content="ok"), temperature=0.9)

        assert mock_cls.call_args.kwargs["temperature"] == 0.9
