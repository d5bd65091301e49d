import json
import logging
import os
import re

from dotenv import load_dotenv
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mermanager.errors import OptimizationError

load_dotenv()
logger = logging.getLogger(__name__)

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Optimized title, 40 characters or fewer"},
        "description": {"type": "string", "description": "Appealing item description"},
        "suggestedPrice": {"type": "number", "description": "Suggested price in yen"},
    },
    "required": ["title", "description", "suggestedPrice"],
    "additionalProperties": False,
}


class OptimizationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    suggested_price: float = Field(alias="suggestedPrice", ge=0)


def extract_json_from_response(text: str):
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        return None
    try:
        return json.loads(match.group())
    except json.JSONDecodeError:
        return None


def build_prompt(title: str, description: str, category: str) -> str:
    return (
        "You're an assistant helping a reseller on Mercari, the Japanese secondhand marketplace. "
        "Rewrite the listing below so it reaches the right buyers: include keywords people search for, "
        "keep the tone polite and appealing, and write in the same language as the listing. "
        "Also suggest a fair price in yen based on the current market.\n\n"
        f"Category: {category}\n"
        f"Current title: {title}\n"
        f"Current description: {description}\n\n"
        "Respond only with a JSON object with the keys title, description and suggestedPrice."
    )


class ListingOptimizer:
    """Asks a hosted model for a better title, description and price."""

    def __init__(self, client=None, model: str = OPENAI_MODEL, api_key: str = OPENAI_API_KEY):
        self.model = model
        self._client = client
        self._api_key = api_key

    @property
    def client(self):
        if self._client is None:
            if not self._api_key:
                raise OptimizationError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def optimize(self, title: str, description: str, category: str) -> OptimizationResult:
        client = self.client
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_prompt(title, description, category)}],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "listing_optimization", "strict": True, "schema": RESPONSE_SCHEMA},
                },
                max_tokens=800,
            )
        except OpenAIError as e:
            logger.error("Optimization request failed: %s", e)
            raise OptimizationError(f"AI service error: {e}") from e

        raw = response.choices[0].message.content if response.choices else None
        if not raw:
            raise OptimizationError("AI response was empty")

        parsed = extract_json_from_response(raw)
        if parsed is None:
            logger.warning("Optimization response was not JSON: %r", raw[:200])
            raise OptimizationError("AI response was not valid JSON")

        try:
            result = OptimizationResult.model_validate(parsed)
        except ValidationError as e:
            raise OptimizationError(f"AI response did not match the expected shape: {e}") from e
        logger.debug("Optimized listing %r -> %r", title, result.title)
        return result
