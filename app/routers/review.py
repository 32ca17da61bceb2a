"""
Browser surface: upload form and review page. Math in statements and options
is split into segments server side and typeset with KaTeX in the page.
"""
import json
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from pydantic import TypeAdapter, ValidationError
from supabase import Client

from app.core.config import settings
from app.core.database import get_db
from app.routers.extraction import get_extraction_invoker
from app.services.math_render import question_view
from app.services.question_store import fetch_courses, fetch_exams, save_grouped_by_year
from app.services.scan_service import build_selection, read_uploads, run_scan
from question_extractor.errors import ExtractionError
from question_extractor.extraction_invoker import ExtractionInvoker
from question_extractor.marking_scheme import QuestionTypeConfig, default_configs, parse_configs
from question_extractor.models import ExtractedQuestion, QUESTION_TYPE_DESCRIPTIONS
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

MARK_FIELDS = ["correct_marks", "incorrect_marks", "skipped_marks", "partial_marks", "time_minutes"]

_questions_adapter = TypeAdapter(List[ExtractedQuestion])


def configs_from_form(form) -> List[QuestionTypeConfig]:
    """Read ``<TYPE>_enabled`` and ``<TYPE>_<field>`` inputs over the defaults."""
    configs = []
    for config in default_configs():
        prefix = config.type.value
        values = {"enabled": form.get(f"{prefix}_enabled") == "on"}
        for name in MARK_FIELDS:
            raw = form.get(f"{prefix}_{name}")
            if raw not in (None, ""):
                try:
                    values[name] = float(raw)
                except ValueError:
                    raise ValueError(f"{prefix} {name.replace('_', ' ')} must be a number") from None
        configs.append(config.model_copy(update=values))
    return configs


def _catalogs(db: Client):
    errors = []
    try:
        courses = fetch_courses(db)
    except Exception as e:
        logger.error(f"Error fetching courses: {e}")
        courses, errors = [], errors + ["Failed to load courses"]
    try:
        exams = fetch_exams(db)
    except Exception as e:
        logger.error(f"Error fetching exams: {e}")
        exams, errors = [], errors + ["Failed to load exams"]
    return courses, exams, errors


def _render_upload(request: Request, db: Client, configs=None, error: str = "", status_code: int = 200):
    courses, exams, errors = _catalogs(db)
    if error:
        errors.append(error)
    return templates.TemplateResponse(
        request,
        "upload.html",
        {
            "project_name": settings.PROJECT_NAME,
            "courses": courses,
            "exams": exams,
            "configs": configs or default_configs(),
            "descriptions": {t.value: d for t, d in QUESTION_TYPE_DESCRIPTIONS.items()},
            "upload_slots": range(settings.MAX_UPLOADS),
            "errors": errors,
        },
        status_code=status_code,
    )


def _render_review(request: Request, questions, selection, message: str = "", error: str = "", status_code: int = 200):
    schemes = {c.type.value: c for c in selection.question_types if c.enabled}
    return templates.TemplateResponse(
        request,
        "review.html",
        {
            "project_name": settings.PROJECT_NAME,
            "questions": [question_view(q.model_dump()) for q in questions],
            "schemes": schemes,
            "selection": selection,
            "question_types_json": json.dumps([c.model_dump(mode="json") for c in selection.question_types]),
            "questions_json": json.dumps([q.model_dump(exclude_none=True) for q in questions]),
            "message": message,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/")
async def upload_page(request: Request, db: Client = Depends(get_db)):
    return _render_upload(request, db)


@router.post("/review")
async def review_scan(
    request: Request,
    db: Client = Depends(get_db),
    invoker: ExtractionInvoker = Depends(get_extraction_invoker),
):
    form = await request.form()
    try:
        configs = configs_from_form(form)
        selection = build_selection(
            form.get("exam_id", ""),
            form.get("course_id", ""),
            form.get("slot", ""),
            form.get("part", ""),
            configs,
            auto_save=form.get("auto_save", "true") == "true",
        )
        uploads = await read_uploads(form.getlist("files"), form.getlist("years"))
        result = await run_scan(uploads, selection, invoker, db)
    except ValueError as ve:
        return _render_upload(request, db, configs=None, error=str(ve), status_code=400)
    except ExtractionError as e:
        logger.error(f"Error during scanning: {e}")
        return _render_upload(request, db, error="Failed to process PDFs. Please try again.", status_code=502)
    except Exception as e:
        logger.error(f"Server Error: {e}")
        return _render_upload(request, db, error=str(e) or "Failed to process PDFs. Please try again.", status_code=500)

    if result.auto_saved:
        message = f"Successfully processed {result.pdf_count} PDFs and auto-saved {result.saved_count} questions!"
    else:
        message = f"Successfully extracted {len(result.questions)} questions from {result.pdf_count} PDFs!"
    return _render_review(request, result.questions, selection, message=message)


@router.post("/review/save")
async def review_save(request: Request, db: Client = Depends(get_db)):
    form = await request.form()
    try:
        configs = parse_configs(form.get("question_types", ""))
        questions = _questions_adapter.validate_json(form.get("questions", "[]") or "[]")
    except (ValueError, ValidationError) as e:
        return _render_upload(request, db, error=f"Could not read reviewed questions: {e}", status_code=400)

    keep = {int(i) for i in form.getlist("keep") if str(i).isdigit()}
    kept = [q for i, q in enumerate(questions) if i in keep]
    selection = build_selection(
        form.get("exam_id", ""), form.get("course_id", ""), form.get("slot", ""), form.get("part", ""),
        configs, auto_save=False,
    )

    try:
        saved = save_grouped_by_year(db, kept, selection)
    except ValueError as ve:
        return _render_review(request, questions, selection, error=str(ve), status_code=400)
    except Exception as e:
        logger.error(f"Error saving questions: {e}")
        return _render_review(request, questions, selection, error="Failed to save questions to database", status_code=500)

    return _render_review(request, [], selection, message=f"Successfully saved {saved} questions to database!")
