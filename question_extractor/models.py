"""
Typed records for questions coming back from the vision model.
"""
from enum import Enum
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, field_validator


class QuestionType(str, Enum):
    MCQ = "MCQ"
    MSQ = "MSQ"
    NAT = "NAT"
    SUBJECTIVE = "Subjective"


ALL_QUESTION_TYPES: List[str] = [t.value for t in QuestionType]

QUESTION_TYPE_DESCRIPTIONS = {
    QuestionType.MCQ: "Multiple Choice Questions (single correct answer)",
    QuestionType.MSQ: "Multiple Select Questions (multiple correct answers)",
    QuestionType.NAT: "Numerical Answer Type (numerical value)",
    QuestionType.SUBJECTIVE: "Descriptive/Essay type questions",
}


def normalize_question_types(types: Optional[Iterable[Union[str, QuestionType]]]) -> List[str]:
    """Turn a caller supplied type set into plain string values, keeping order."""
    if types is None:
        return list(ALL_QUESTION_TYPES)
    normalized = []
    for t in types:
        value = t.value if isinstance(t, QuestionType) else str(t)
        if value not in normalized:
            normalized.append(value)
    return normalized


class ExtractedQuestion(BaseModel):
    question_number: str = ""
    question_statement: str = ""
    question_type: str = ""
    options: Optional[List[str]] = None
    has_image: bool = False
    image_description: Optional[str] = None

    # Advisory metadata, accepted as the model sends it
    marks: Optional[Union[float, str]] = None
    difficulty: Optional[str] = None
    subject: Optional[str] = None
    topic: Optional[str] = None

    # Attached by the scan pipeline, never by the model
    year: Optional[int] = None

    @field_validator("question_number", mode="before")
    @classmethod
    def _label_as_text(cls, value):
        # Models often send 1 instead of "1"
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return str(int(value)) if float(value).is_integer() else str(value)
        if value is None:
            return ""
        return value

    @field_validator("question_statement", "question_type", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value
