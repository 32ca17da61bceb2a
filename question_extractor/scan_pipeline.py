"""
Scan Pipeline - the upload shell around the Extraction Invoker.

For every uploaded PDF: render pages → extract page by page → tag with the
paper's year → optionally auto-save. PDFs and pages are processed strictly one
after another so a document's Page Memory is never shared between calls.
"""
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from question_extractor.extraction_invoker import ExtractionInvoker
from question_extractor.marking_scheme import QuestionTypeConfig, enabled_type_names
from question_extractor.models import ExtractedQuestion
from question_extractor.pdf_renderer import render_pdf_pages
from utils.logger import get_logger

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = (
    "Please fill all required fields: exam, course, slot, part, question types, and upload PDFs"
)

SaveCallback = Callable[[List[ExtractedQuestion], str], Awaitable[int]]
Renderer = Callable[[bytes], List[str]]


@dataclass
class PdfUpload:
    filename: str
    content: bytes
    year: str = ""

    @property
    def is_ready(self) -> bool:
        return bool(self.content) and bool(self.year.strip())


@dataclass
class ScanSelection:
    exam_id: str
    course_id: str
    slot: str
    part: str
    question_types: List[QuestionTypeConfig] = field(default_factory=list)
    auto_save: bool = True

    def is_complete(self) -> bool:
        return bool(
            self.exam_id.strip()
            and self.course_id.strip()
            and self.slot.strip()
            and self.part.strip()
            and enabled_type_names(self.question_types)
        )


@dataclass
class ScanResult:
    questions: List[ExtractedQuestion]
    pdf_count: int
    saved_count: int = 0
    auto_saved: bool = False


def previous_page_context(questions: List[ExtractedQuestion]) -> str:
    if not questions:
        return ""
    numbers = ", ".join(q.question_number for q in questions)
    return f"Questions extracted from the previous page: {numbers}"


async def extract_document(
    invoker: ExtractionInvoker,
    page_images: List[str],
    enabled_types: List[str],
) -> List[ExtractedQuestion]:
    """Run the invoker over every page of one document with a fresh Page Memory."""
    page_memory = {}
    previous_context = ""
    questions = []

    for index, image in enumerate(page_images):
        page_number = index + 1
        logger.info(f"Extracting page {page_number} of {len(page_images)}...")
        page_questions = await invoker.extract(
            image,
            page_number,
            previous_context=previous_context,
            page_memory=page_memory,
            enabled_question_types=enabled_types,
        )
        questions.extend(page_questions)
        previous_context = previous_page_context(page_questions)

    return questions


async def scan_uploads(
    uploads: List[PdfUpload],
    selection: ScanSelection,
    invoker: ExtractionInvoker,
    save: Optional[SaveCallback] = None,
    renderer: Optional[Renderer] = None,
    max_uploads: Optional[int] = None,
) -> ScanResult:
    valid_pdfs = [u for u in uploads if u.is_ready]
    if not valid_pdfs or not selection.is_complete():
        raise ValueError(MISSING_FIELDS_MESSAGE)

    limit = max_uploads if max_uploads is not None else settings.MAX_UPLOADS
    if len(valid_pdfs) > limit:
        raise ValueError(f"At most {limit} PDFs can be scanned at once")

    # Nothing is rendered, extracted or saved until every year is usable
    for pdf_upload in valid_pdfs:
        if not pdf_upload.year.strip().isdigit():
            raise ValueError(f"Year for {pdf_upload.filename} must be a number")

    render = renderer or render_pdf_pages
    enabled_types = enabled_type_names(selection.question_types)
    auto_save = selection.auto_save and save is not None

    all_questions = []
    saved_count = 0

    for i, pdf_upload in enumerate(valid_pdfs):
        logger.info(f"PDF {i + 1} of {len(valid_pdfs)}: {pdf_upload.filename} - converting PDF to images...")
        page_images = await run_in_threadpool(render, pdf_upload.content)

        logger.info(f"PDF {i + 1} of {len(valid_pdfs)}: extracting questions with AI...")
        questions = await extract_document(invoker, page_images, enabled_types)

        year = int(pdf_upload.year.strip())
        questions_with_year = [q.model_copy(update={"year": year}) for q in questions]
        all_questions.extend(questions_with_year)

        if auto_save:
            logger.info(f"PDF {i + 1} of {len(valid_pdfs)}: auto-saving {len(questions_with_year)} questions...")
            saved_count += await save(questions_with_year, pdf_upload.year.strip())

    logger.info(f"Scan complete: {len(all_questions)} questions from {len(valid_pdfs)} PDFs")
    return ScanResult(
        questions=all_questions,
        pdf_count=len(valid_pdfs),
        saved_count=saved_count,
        auto_saved=auto_save,
    )
