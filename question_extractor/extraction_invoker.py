"""
Extraction Invoker - one page image in, validated questions out.

Each attempt uses the next API key in the pool, so a run of failures tries
every key once before giving up. Failures of any kind (HTTP status, network,
malformed JSON) are retried the same way with a linear backoff.
"""
import asyncio
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

import httpx

from app.core.config import settings
from question_extractor.errors import ExtractionAttemptError, ExtractionError
from question_extractor.models import ExtractedQuestion, normalize_question_types
from question_extractor.page_memory import PageMemory, record_page, DEFAULT_WINDOW
from question_extractor.prompts import build_extraction_prompt
from question_extractor.validation import parse_questions, filter_valid_questions
from utils.logger import get_logger

logger = get_logger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


def build_request_body(prompt: str, image_base64: str, model: str, max_tokens: int, temperature: float) -> Dict:
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": prompt
                    },
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:image/jpeg;base64,{image_base64}",
                            "detail": "high"
                        }
                    }
                ]
            }
        ],
        "max_tokens": max_tokens,
        "temperature": temperature
    }


def completion_text(data) -> str:
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ExtractionAttemptError(f"Unexpected completion payload: {e}") from e


class ExtractionInvoker:
    def __init__(
        self,
        api_keys: List[str],
        api_url: str = OPENAI_CHAT_URL,
        model: str = "gpt-4o",
        max_tokens: int = 4000,
        temperature: float = 0.1,
        backoff_seconds: float = 1.0,
        memory_window: int = DEFAULT_WINDOW,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_keys = list(api_keys)
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.backoff_seconds = backoff_seconds
        self.memory_window = memory_window
        self.http_client = http_client
        self.sleep = sleep

    async def _post(self, api_key: str, body: Dict) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        if self.http_client is not None:
            return await self.http_client.post(self.api_url, headers=headers, json=body)
        # No timeout: a vision completion for a dense page can take minutes
        async with httpx.AsyncClient(timeout=None) as client:
            return await client.post(self.api_url, headers=headers, json=body)

    async def _attempt(
        self,
        api_key: str,
        image_base64: str,
        page_number: int,
        previous_context: str,
        page_memory: PageMemory,
        enabled_types: List[str],
    ) -> List[ExtractedQuestion]:
        record_page(page_memory, page_number)

        prompt = build_extraction_prompt(
            page_number, previous_context, page_memory, enabled_types, self.memory_window
        )
        body = build_request_body(prompt, image_base64, self.model, self.max_tokens, self.temperature)

        try:
            response = await self._post(api_key, body)
        except httpx.HTTPError as e:
            raise ExtractionAttemptError(f"API request failed: {e}") from e

        if not response.is_success:
            raise ExtractionAttemptError(f"API request failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ExtractionAttemptError("API returned a non-JSON body") from e

        questions = parse_questions(completion_text(data))
        valid = filter_valid_questions(questions, enabled_types)

        if questions and not valid:
            logger.warning(
                f"Page {page_number}: all {len(questions)} extracted questions were dropped by validation"
            )
        return valid

    async def extract(
        self,
        image_base64: str,
        page_number: int,
        previous_context: str = "",
        page_memory: Optional[PageMemory] = None,
        enabled_question_types: Optional[Iterable[str]] = None,
    ) -> List[ExtractedQuestion]:
        """
        Extract the questions on one page.

        ``page_memory`` is borrowed for the duration of the call and gets an
        entry for ``page_number`` on every attempt. Raises ExtractionError once
        every key in the pool has failed.
        """
        if page_memory is None:
            page_memory = {}
        enabled_types = normalize_question_types(enabled_question_types)

        max_retries = len(self.api_keys)
        retry_count = 0

        while retry_count < max_retries:
            api_key = self.api_keys[retry_count % len(self.api_keys)]
            try:
                questions = await self._attempt(
                    api_key, image_base64, page_number, previous_context, page_memory, enabled_types
                )
                logger.info(f"Page {page_number}: extracted {len(questions)} questions on attempt {retry_count + 1}")
                return questions
            except ExtractionAttemptError as e:
                logger.error(f"Extraction attempt {retry_count + 1} failed: {e}")
                retry_count += 1

                if retry_count >= max_retries:
                    raise ExtractionError(max_retries, e) from e

                await self.sleep(self.backoff_seconds * retry_count)

        logger.warning(f"Page {page_number}: no API keys configured, nothing extracted")
        return []


def get_invoker(http_client: Optional[httpx.AsyncClient] = None) -> ExtractionInvoker:
    """Invoker configured from the app settings (loaded from .env)."""
    return ExtractionInvoker(
        api_keys=settings.api_keys,
        api_url=settings.OPENAI_API_URL,
        model=settings.OPENAI_MODEL,
        max_tokens=settings.EXTRACTION_MAX_TOKENS,
        temperature=settings.EXTRACTION_TEMPERATURE,
        backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
        memory_window=settings.PAGE_MEMORY_WINDOW,
        http_client=http_client,
    )


async def perform_extraction(
    image_base64: str,
    page_number: int,
    previous_context: str = "",
    page_memory: Optional[PageMemory] = None,
    enabled_question_types: Optional[Iterable[str]] = None,
) -> List[ExtractedQuestion]:
    return await get_invoker().extract(
        image_base64, page_number, previous_context, page_memory, enabled_question_types
    )
