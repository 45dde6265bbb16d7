"""OpenAI provider implementation using vision input and structured outputs."""

import base64
import mimetypes
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field
from openai import OpenAI
from llm.providers.base import LLMProvider, ReceiptExtraction, parse_extraction
from llm.prompts.loader import PromptManager
from logger import get_logger

logger = get_logger()

# Categories the model is asked to choose from; matched against the user's
# own categories afterwards
SUGGESTED_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Entertainment",
    "Shopping",
    "Healthcare",
    "Utilities",
    "Travel",
    "Other",
]


class ReceiptExtractionResponse(BaseModel):
    """Structured output schema for a single receipt."""

    amount: Optional[str] = Field(None, description="Decimal string, e.g. '25.99'")
    description: Optional[str] = None
    merchant: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = Field(None, description="YYYY-MM-DD or null")
    confidence: Optional[float] = None


class OpenAIProvider(LLMProvider):
    """Extracts receipts with an OpenAI vision model."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        categories: Optional[List[str]] = None,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key.
            model: Model to use (e.g., "gpt-4o-mini"). If None, uses prompt default.
            categories: Category names offered to the model.
        """
        self.client = OpenAI(api_key=api_key)
        self.model = model
        self.categories = categories or SUGGESTED_CATEGORIES
        self.prompt_manager = PromptManager()

    def extract_receipt(self, image_path: Path) -> ReceiptExtraction:
        """Extract expense data from a receipt image.

        Raises:
            FileNotFoundError: If the image does not exist.
            ValueError: If the model returns no parsable answer.
            Exception: If the OpenAI API call fails.
        """
        image_path = Path(image_path)
        image_url = _image_data_url(image_path)

        rendered_prompt = self.prompt_manager.render_prompt(
            "receipt_extraction",
            {"categories": ", ".join(f'"{name}"' for name in self.categories)},
        )
        model = self.model or rendered_prompt["parameters"].get("model", "gpt-4o-mini")

        logger.info(
            f"Extracting {image_path.name} with {model}, "
            f"prompt version {rendered_prompt['version']}"
        )

        try:
            response = self.client.beta.chat.completions.parse(
                model=model,
                messages=[
                    {"role": "system", "content": rendered_prompt["system_prompt"]},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": rendered_prompt["user_prompt"]},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    },
                ],
                temperature=rendered_prompt["parameters"].get("temperature", 0.1),
                max_tokens=rendered_prompt["parameters"].get("max_tokens", 1500),
                response_format=ReceiptExtractionResponse,
            )
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        message = response.choices[0].message
        if message.parsed is None:
            raise ValueError("OpenAI returned no parsable receipt data")

        extraction = parse_extraction(message.parsed.model_dump(), raw_text=message.content)
        logger.info(
            f"Extracted {extraction.amount} '{extraction.description}' "
            f"as '{extraction.category}' (confidence {extraction.confidence})"
        )
        return extraction


def _image_data_url(image_path: Path) -> str:
    """Read an image into a base64 data URL."""
    with open(image_path, "rb") as f:
        encoded = base64.b64encode(f.read()).decode("ascii")
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"
    return f"data:{mime_type};base64,{encoded}"
