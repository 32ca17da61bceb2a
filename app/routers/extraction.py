from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Form
from app.core.database import get_db
from app.services.scan_service import build_selection, read_uploads, run_scan
from question_extractor.errors import ExtractionError
from question_extractor.extraction_invoker import ExtractionInvoker, get_invoker
from question_extractor.marking_scheme import default_configs, parse_configs
from question_extractor.models import ALL_QUESTION_TYPES, QuestionType
from supabase import Client
from pydantic import BaseModel, Field
from typing import Dict, List
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_extraction_invoker() -> ExtractionInvoker:
    return get_invoker()


class PageExtractionRequest(BaseModel):
    image_base64: str
    page_number: int = Field(..., ge=1)
    previous_context: str = ""
    page_memory: Dict[int, str] = {}
    enabled_question_types: List[QuestionType] = [QuestionType(t) for t in ALL_QUESTION_TYPES]


@router.get("/marking-schemes")
async def get_marking_schemes():
    return [c.model_dump(mode="json") for c in default_configs()]


@router.post("/page")
async def extract_page(
    payload: PageExtractionRequest,
    invoker: ExtractionInvoker = Depends(get_extraction_invoker),
):
    """
    Extract the questions from one page image. The caller owns the page
    memory: it is sent in and the updated copy is returned.
    """
    if not invoker.api_keys:
        raise HTTPException(status_code=500, detail="Server misconfigured: Missing AI Key")

    page_memory = dict(payload.page_memory)
    try:
        questions = await invoker.extract(
            payload.image_base64,
            payload.page_number,
            previous_context=payload.previous_context,
            page_memory=page_memory,
            enabled_question_types=[t.value for t in payload.enabled_question_types],
        )
    except ExtractionError as e:
        logger.error(f"Page {payload.page_number} extraction failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "questions": [q.model_dump(exclude_none=True) for q in questions],
        "page_memory": page_memory,
    }


@router.post("/scan")
async def scan_pdfs(
    files: List[UploadFile] = File(...),
    years: List[str] = Form([]),
    exam_id: str = Form(""),
    course_id: str = Form(""),
    slot: str = Form(""),
    part: str = Form(""),
    question_types: str = Form(""),
    auto_save: bool = Form(True),
    db: Client = Depends(get_db),
    invoker: ExtractionInvoker = Depends(get_extraction_invoker),
):
    """
    Scan up to 20 PDFs. ``years[i]`` is the exam year of ``files[i]``;
    ``question_types`` is a JSON list of marking scheme configs.
    """
    try:
        configs = parse_configs(question_types)
        uploads = await read_uploads(files, years)
        selection = build_selection(exam_id, course_id, slot, part, configs, auto_save)
        result = await run_scan(uploads, selection, invoker, db)
    except ValueError as ve:
        logger.error(f"Validation Error: {ve}")
        raise HTTPException(status_code=400, detail=str(ve))
    except ExtractionError as e:
        logger.error(f"Error during scanning: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Server Error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "questions": [q.model_dump(exclude_none=True) for q in result.questions],
        "pdf_count": result.pdf_count,
        "question_count": len(result.questions),
        "saved_count": result.saved_count,
        "auto_saved": result.auto_saved,
    }
