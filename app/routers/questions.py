from fastapi import APIRouter, HTTPException, Depends
from app.core.database import get_db
from app.services.question_store import save_grouped_by_year
from app.services.scan_service import build_selection
from question_extractor.marking_scheme import QuestionTypeConfig
from question_extractor.models import ExtractedQuestion
from supabase import Client
from pydantic import BaseModel
from typing import List
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

class SaveQuestionsRequest(BaseModel):
    exam_id: str
    course_id: str
    slot: str
    part: str
    question_types: List[QuestionTypeConfig]
    questions: List[ExtractedQuestion]

@router.post("/save")
async def save_reviewed_questions(payload: SaveQuestionsRequest, db: Client = Depends(get_db)):
    selection = build_selection(
        payload.exam_id, payload.course_id, payload.slot, payload.part, payload.question_types, auto_save=False
    )
    if not selection.is_complete():
        raise HTTPException(status_code=400, detail="Please fill all required fields: exam, course, slot, part, question types")

    try:
        saved = save_grouped_by_year(db, payload.questions, selection)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        logger.error(f"Error saving questions: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"saved": saved}
