from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from config import Config
from llm import get_llm_provider
from llm.prompts.loader import PromptManager
from llm.providers.base import DEFAULT_CATEGORY, parse_extraction
from llm.providers.openai import OpenAIProvider, ReceiptExtractionResponse


class TestParseExtraction:
    """Tests for normalizing a provider answer."""

    def test_full_answer(self):
        extraction = parse_extraction(
            {
                "amount": "42.10",
                "description": "Dinner",
                "merchant": "Bistro",
                "category": "Food & Dining",
                "date": "2024-04-20",
                "confidence": 0.95,
            }
        )

        assert extraction.amount == Decimal("42.10")
        assert extraction.date == date(2024, 4, 20)
        assert extraction.confidence == 0.95
        assert extraction.needs_review is False

    def test_defaults_for_missing_fields(self):
        today = date(2024, 1, 5)

        extraction = parse_extraction({}, today=today)

        assert extraction.amount == Decimal("0")
        assert extraction.description == "Unknown expense"
        assert extraction.merchant == "Unknown merchant"
        assert extraction.category == DEFAULT_CATEGORY
        assert extraction.date == today
        assert extraction.confidence == 0.1
        assert extraction.needs_review is True

    def test_bad_date_falls_back_to_today(self):
        today = date(2024, 1, 5)
        extraction = parse_extraction({"date": "yesterday-ish"}, today=today)
        assert extraction.date == today

    def test_to_dict(self):
        extraction = parse_extraction({"amount": "3.5", "date": "2024-02-02"})

        data = extraction.to_dict()

        assert data["amount"] == "3.5"
        assert data["date"] == "2024-02-02"


class TestPromptManager:
    def test_renders_receipt_prompt(self):
        rendered = PromptManager().render_prompt(
            "receipt_extraction", {"categories": '"Food", "Other"'}
        )

        assert '"Food", "Other"' in rendered["user_prompt"]
        assert rendered["system_prompt"]
        assert rendered["parameters"]["model"] == "gpt-4o-mini"
        assert rendered["version"] == "1.0"

    def test_missing_prompt(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PromptManager(tmp_path).load_prompt("nope")

    def test_prompt_missing_keys(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("version: '1'\nsystem_prompt: hi\n")

        with pytest.raises(ValueError):
            PromptManager(tmp_path).load_prompt("broken")


class TestOpenAIProvider:
    """OpenAIProvider against a mocked client."""

    def _response(self, parsed):
        message = SimpleNamespace(
            parsed=parsed, content=parsed.model_dump_json() if parsed else None
        )
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    @patch("llm.providers.openai.OpenAI")
    def test_extract_receipt(self, mock_openai, tmp_path):
        image = tmp_path / "receipt.png"
        image.write_bytes(b"\x89PNG fake")
        client = MagicMock()
        mock_openai.return_value = client
        client.beta.chat.completions.parse.return_value = self._response(
            ReceiptExtractionResponse(
                amount="12.00",
                description="Taxi ride",
                merchant="City Cabs",
                category="Transportation",
                date="2024-03-03",
                confidence=0.88,
            )
        )

        extraction = OpenAIProvider(api_key="sk-test", model="gpt-4o").extract_receipt(image)

        assert extraction.amount == Decimal("12.00")
        assert extraction.category == "Transportation"
        assert extraction.date == date(2024, 3, 3)
        assert extraction.needs_review is False
        assert "Taxi ride" in extraction.raw_text

        kwargs = client.beta.chat.completions.parse.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["response_format"] is ReceiptExtractionResponse
        image_part = kwargs["messages"][1]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/png;base64,")

    @patch("llm.providers.openai.OpenAI")
    def test_refusal_raises(self, mock_openai, tmp_path):
        image = tmp_path / "receipt.jpg"
        image.write_bytes(b"fake")
        client = MagicMock()
        mock_openai.return_value = client
        client.beta.chat.completions.parse.return_value = self._response(None)

        with pytest.raises(ValueError):
            OpenAIProvider(api_key="sk-test").extract_receipt(image)

    @patch("llm.providers.openai.OpenAI")
    def test_missing_image(self, mock_openai, tmp_path):
        with pytest.raises(FileNotFoundError):
            OpenAIProvider(api_key="sk-test").extract_receipt(tmp_path / "missing.jpg")


class TestFactory:
    def _config(self, tmp_path, **overrides):
        config = Config(
            base_dir=tmp_path,
            db_data_dir=tmp_path,
            db_filename="test.db",
            log_level="INFO",
            log_dir=tmp_path,
            receipts_dir=tmp_path,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    def test_disabled(self, tmp_path):
        assert get_llm_provider(self._config(tmp_path)) is None

    def test_missing_key(self, tmp_path):
        with pytest.raises(ValueError):
            get_llm_provider(self._config(tmp_path, llm_enabled=True))

    def test_unknown_provider(self, tmp_path):
        with pytest.raises(ValueError):
            get_llm_provider(self._config(tmp_path, llm_enabled=True, llm_provider="acme"))

    @patch("llm.providers.openai.OpenAI")
    def test_openai(self, mock_openai, tmp_path):
        provider = get_llm_provider(
            self._config(tmp_path, llm_enabled=True, llm_openai_api_key="sk-test")
        )

        assert isinstance(provider, OpenAIProvider)
        mock_openai.assert_called_once_with(api_key="sk-test")
