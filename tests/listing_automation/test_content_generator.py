"""Tests for LLM-backed listing copy."""

from unittest.mock import patch

import pytest

from listing_automation.content_generator import (
    clean_title,
    fallback_title,
    generate_description,
    generate_title,
    optimize_seo,
    truncate_meta_description,
)


class TestTitles:
    """Tests for title generation."""

    def test_clean_title(self):
        assert clean_title('  "Strike Out   Cancer\nBaseball DTF Transfer"  ') == (
            "Strike Out Cancer Baseball DTF Transfer"
        )

    def test_fallback_title_drops_numbers_and_fragments(self):
        title = fallback_title(["00", "EMT", "to", "Saving Lives Daily Since Forever"], "EMT", "DTF Transfer")

        assert title == "EMT Saving Lives Daily Since F EMT DTF Transfer"

    @patch("listing_automation.content_generator.get_llm_response")
    def test_generate_title(self, mock_llm):
        mock_llm.return_value = "'Baseball Mama Life DTF Transfer'\n"

        title = generate_title(["Mama Life"], ["baseball"], "Baseball", "DTF Design", "DTF Transfer")

        assert title == "Baseball Mama Life DTF Transfer"
        args, kwargs = mock_llm.call_args
        assert args[0].endswith("generate_title.jinja2")
        assert args[1]["title_suffix"] == "DTF Transfer"

    @patch("listing_automation.content_generator.get_llm_response")
    def test_generate_title_empty_response_uses_fallback(self, mock_llm):
        mock_llm.return_value = '""'

        title = generate_title(["Mama Life", "7"], [], "Baseball", "DTF Design", "DTF Transfer")

        assert title == "Mama Life Baseball DTF Transfer"


class TestDescription:
    @patch("listing_automation.content_generator.get_llm_response")
    def test_strips_response(self, mock_llm):
        mock_llm.return_value = "\n  Feel the siren song of the night shift.  \n"

        description = generate_description("EMT-Hero", "EMT - DTF Designs", ["ambulance"], ["#ff0000"], "EMT", "")

        assert description == "Feel the siren song of the night shift."

    @patch("listing_automation.content_generator.get_llm_response")
    def test_llm_errors_propagate(self, mock_llm):
        mock_llm.side_effect = RuntimeError("quota")

        with pytest.raises(RuntimeError):
            generate_description("EMT-Hero", "EMT", [], [], "", "")


class TestSeo:
    """Tests for SEO optimization."""

    def test_truncate_meta_description(self):
        assert truncate_meta_description("m" * 160) == "m" * 160
        truncated = truncate_meta_description("m" * 200)
        assert truncated == "m" * 157 + "..."
        assert len(truncated) == 160

    @patch("listing_automation.content_generator.get_llm_response")
    def test_parses_fenced_json(self, mock_llm):
        mock_llm.return_value = (
            "```json\n"
            '{"meta_description": "' + "m" * 180 + '", '
            '"search_keywords": ["emt shirt"], "suggested_tags": ["paramedic", "ems"]}\n'
            "```"
        )

        seo = optimize_seo("EMT Hero", "desc", ["ambulance"], "EMT")

        assert seo.meta_description == "m" * 157 + "..."
        assert seo.search_keywords == ["emt shirt"]
        assert seo.suggested_tags == ["paramedic", "ems"]

    @patch("listing_automation.content_generator.get_llm_response")
    def test_fallback_on_bad_json(self, mock_llm):
        mock_llm.return_value = "I cannot help with that"

        seo = optimize_seo("EMT Hero", "desc", ["a", "b", "c", "d", "e", "f"], "EMT")

        assert seo.meta_description == "EMT Hero - Shop now!"
        assert seo.search_keywords == ["a", "b", "c", "d", "e"]
        assert seo.suggested_tags == ["a", "b", "c", "d", "e", "f", "EMT"]

    @patch("listing_automation.content_generator.get_llm_response")
    def test_fallback_on_llm_error(self, mock_llm):
        mock_llm.side_effect = RuntimeError("quota")

        seo = optimize_seo("T" * 200, "desc", [], "EMT")

        assert seo.meta_description == "T" * 140 + " - Shop now!"
        assert seo.suggested_tags == ["EMT"]
