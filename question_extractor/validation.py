"""
Turning the model's completion into trusted question records.

Parsing is strict about shape: anything that is not a JSON array of objects
with correctly typed fields is a malformed response and gets retried.
Filtering is lenient about content: records without a number or statement,
or with a type outside the enabled set, are dropped without an error.
"""
import json
from typing import Iterable, List, Set

from pydantic import ValidationError

from question_extractor.errors import MalformedResponseError
from question_extractor.models import ExtractedQuestion
from utils.logger import get_logger

logger = get_logger(__name__)


def strip_code_fences(text: str) -> str:
    clean = text.strip()
    if clean.startswith("```json"):
        clean = clean[7:]
    elif clean.startswith("```"):
        clean = clean[3:]
    if clean.endswith("```"):
        clean = clean[:-3]
    return clean.strip()


def parse_questions(content: str) -> List[ExtractedQuestion]:
    """Parse completion text into question records or raise MalformedResponseError."""
    if not isinstance(content, str):
        raise MalformedResponseError("Completion has no text content", raw_text=repr(content))

    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {content}")
        raise MalformedResponseError("Invalid JSON response from API", raw_text=content) from e

    if not isinstance(data, list):
        logger.error(f"Expected a JSON array, got {type(data).__name__}: {content[:1000]}")
        raise MalformedResponseError("JSON response is not an array", raw_text=content)

    questions = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedResponseError(f"Question {i + 1} is not an object", raw_text=content)
        try:
            questions.append(ExtractedQuestion.model_validate(item))
        except ValidationError as e:
            logger.error(f"Question {i + 1} has unexpected field types: {e}")
            raise MalformedResponseError(f"Question {i + 1} has unexpected field types", raw_text=content) from e

    return questions


def is_valid_question(question: ExtractedQuestion, enabled_types: Set[str]) -> bool:
    return bool(
        question.question_number.strip()
        and question.question_statement.strip()
        and question.question_type in enabled_types
    )


def filter_valid_questions(questions: Iterable[ExtractedQuestion], enabled_types: Iterable[str]) -> List[ExtractedQuestion]:
    enabled = set(enabled_types)
    return [q for q in questions if is_valid_question(q, enabled)]
