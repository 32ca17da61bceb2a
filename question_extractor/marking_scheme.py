"""
Per question type marking scheme. The operator enables the types present in a
paper and may change the marks; saved questions carry the values of their
type's config.
"""
import json
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

from question_extractor.models import QuestionType


class QuestionTypeConfig(BaseModel):
    type: QuestionType
    enabled: bool = False
    correct_marks: float = 0
    incorrect_marks: float = 0
    skipped_marks: float = 0
    partial_marks: float = 0
    time_minutes: float = 0


def default_configs() -> List[QuestionTypeConfig]:
    return [
        QuestionTypeConfig(type=QuestionType.MCQ, correct_marks=4, incorrect_marks=-1, skipped_marks=0, partial_marks=0, time_minutes=3),
        QuestionTypeConfig(type=QuestionType.MSQ, correct_marks=4, incorrect_marks=-2, skipped_marks=0, partial_marks=1, time_minutes=3),
        QuestionTypeConfig(type=QuestionType.NAT, correct_marks=4, incorrect_marks=0, skipped_marks=0, partial_marks=0, time_minutes=3),
        QuestionTypeConfig(type=QuestionType.SUBJECTIVE, correct_marks=10, incorrect_marks=0, skipped_marks=0, partial_marks=2, time_minutes=15),
    ]


def enabled_configs(configs: List[QuestionTypeConfig]) -> List[QuestionTypeConfig]:
    return [c for c in configs if c.enabled]


def enabled_type_names(configs: List[QuestionTypeConfig]) -> List[str]:
    return [c.type.value for c in enabled_configs(configs)]


def config_for(configs: List[QuestionTypeConfig], question_type: str) -> Optional[QuestionTypeConfig]:
    for config in enabled_configs(configs):
        if config.type.value == question_type:
            return config
    return None


def marks_for(configs: List[QuestionTypeConfig], question_type: str) -> Dict[str, float]:
    """Marking columns for a question row; zeros when the type is not enabled."""
    config = config_for(configs, question_type)
    return {
        "correct_marks": config.correct_marks if config else 0,
        "incorrect_marks": config.incorrect_marks if config else 0,
        "skipped_marks": config.skipped_marks if config else 0,
        "partial_marks": config.partial_marks if config else 0,
        "time_minutes": config.time_minutes if config else 0,
    }


def parse_configs(raw: Optional[str]) -> List[QuestionTypeConfig]:
    """
    Parse the form's JSON list of configs. Types missing from the list keep
    their defaults (disabled).
    """
    configs = {c.type: c for c in default_configs()}
    if not raw:
        return list(configs.values())

    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid question type configuration: {e}") from e
    if not isinstance(items, list):
        raise ValueError("Question type configuration must be a list")

    for item in items:
        try:
            config = QuestionTypeConfig.model_validate(item)
        except ValidationError as e:
            raise ValueError(f"Invalid question type configuration: {e}") from e
        # Only the fields present in the item replace the type's defaults
        configs[config.type] = configs[config.type].model_copy(
            update=config.model_dump(include=config.model_fields_set)
        )

    return list(configs.values())
