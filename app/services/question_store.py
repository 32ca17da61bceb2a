"""
Supabase persistence for extracted questions and the course / exam catalogs.
"""
from collections import OrderedDict
from typing import Any, Dict, List

from supabase import Client

from app.core.config import settings
from question_extractor.marking_scheme import QuestionTypeConfig, marks_for
from question_extractor.models import ExtractedQuestion
from question_extractor.scan_pipeline import ScanSelection
from utils.logger import get_logger

logger = get_logger(__name__)


def build_question_rows(
    questions: List[ExtractedQuestion],
    year: str,
    selection: ScanSelection,
    configs: List[QuestionTypeConfig],
) -> List[Dict[str, Any]]:
    rows = []
    for q in questions:
        row = {
            "question_type": q.question_type,
            "question_statement": q.question_statement,
            "options": q.options if q.options else None,
            "course_id": selection.course_id,
            "year": int(year),
            "slot": selection.slot.strip(),
            "part": selection.part.strip(),
            "categorized": False,
        }
        row.update(marks_for(configs, q.question_type))
        rows.append(row)

    return [r for r in rows if r["question_statement"] and r["question_statement"].strip()]


def save_questions(
    db: Client,
    questions: List[ExtractedQuestion],
    year: str,
    selection: ScanSelection,
) -> int:
    rows = build_question_rows(questions, year, selection, selection.question_types)
    if not rows:
        raise ValueError("No valid questions to save")
    return _insert_rows(db, rows, year)


def _insert_rows(db: Client, rows: List[Dict[str, Any]], year: str) -> int:
    db.table(settings.QUESTIONS_TABLE).insert(rows).execute()
    logger.info(f"Saved {len(rows)} questions for year {year}")
    return len(rows)


def group_by_year(questions: List[ExtractedQuestion]) -> "OrderedDict[str, List[ExtractedQuestion]]":
    groups = OrderedDict()
    for q in questions:
        year = str(q.year) if q.year is not None else "unknown"
        groups.setdefault(year, []).append(q)
    return groups


def save_grouped_by_year(db: Client, questions: List[ExtractedQuestion], selection: ScanSelection) -> int:
    """
    Save reviewed questions one year at a time. Every group is checked
    before the first insert, so a bad group leaves the table untouched.
    """
    if not questions:
        raise ValueError("No questions to save")

    batches = []
    for year, group in group_by_year(questions).items():
        if year == "unknown":
            raise ValueError("Every question needs a year before it can be saved")
        rows = build_question_rows(group, year, selection, selection.question_types)
        if not rows:
            raise ValueError("No valid questions to save")
        batches.append((year, rows))

    return sum(_insert_rows(db, rows, year) for year, rows in batches)


def fetch_courses(db: Client) -> List[Dict[str, Any]]:
    response = db.table("courses").select("id, name").order("name").execute()
    return response.data or []


def fetch_exams(db: Client) -> List[Dict[str, Any]]:
    response = db.table("exams").select("id").order("id").execute()
    return response.data or []
