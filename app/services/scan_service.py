"""
Glue between uploaded form data and the scan pipeline, shared by the JSON API
and the review page.
"""
from typing import List, Optional

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from supabase import Client

from app.core.config import settings
from app.services.question_store import save_questions
from question_extractor.extraction_invoker import ExtractionInvoker
from question_extractor.marking_scheme import QuestionTypeConfig
from question_extractor.models import ExtractedQuestion
from question_extractor.pdf_renderer import render_pdf_pages
from question_extractor.scan_pipeline import PdfUpload, ScanResult, ScanSelection, scan_uploads
from utils.logger import get_logger

logger = get_logger(__name__)


async def read_uploads(files: List[UploadFile], years: List[str]) -> List[PdfUpload]:
    """Pair files with years by position; empty file slots are skipped."""
    if len(years) < len(files):
        years = list(years) + [""] * (len(files) - len(years))

    uploads = []
    for upload_file, year in zip(files, years):
        if not upload_file.filename:
            continue
        if not upload_file.filename.lower().endswith(".pdf"):
            raise ValueError(f"Invalid file type for {upload_file.filename}. Only PDF allowed.")
        content = await upload_file.read()
        logger.info(f"Received file: {upload_file.filename} ({len(content)} bytes)")
        uploads.append(PdfUpload(filename=upload_file.filename, content=content, year=year or ""))
    return uploads


def render_with_settings(pdf_bytes: bytes) -> List[str]:
    return render_pdf_pages(pdf_bytes, scale=settings.RENDER_SCALE, quality=settings.JPEG_QUALITY)


async def run_scan(
    uploads: List[PdfUpload],
    selection: ScanSelection,
    invoker: ExtractionInvoker,
    db: Optional[Client],
) -> ScanResult:
    if not invoker.api_keys:
        raise RuntimeError("Server misconfigured: Missing AI Key")

    save = None
    if db is not None:
        async def save(questions: List[ExtractedQuestion], year: str) -> int:
            return await run_in_threadpool(save_questions, db, questions, year, selection)

    return await scan_uploads(uploads, selection, invoker, save=save, renderer=render_with_settings)


def build_selection(
    exam_id: str,
    course_id: str,
    slot: str,
    part: str,
    question_types: List[QuestionTypeConfig],
    auto_save: bool = True,
) -> ScanSelection:
    return ScanSelection(
        exam_id=exam_id or "",
        course_id=course_id or "",
        slot=slot or "",
        part=part or "",
        question_types=question_types,
        auto_save=auto_save,
    )
