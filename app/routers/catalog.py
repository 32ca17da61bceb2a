from fastapi import APIRouter, HTTPException, Depends
from app.core.database import get_db
from app.services.question_store import fetch_courses, fetch_exams
from supabase import Client
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

@router.get("/courses")
async def get_courses(db: Client = Depends(get_db)):
    try:
        return fetch_courses(db)
    except Exception as e:
        logger.error(f"Error fetching courses: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/exams")
async def get_exams(db: Client = Depends(get_db)):
    try:
        return fetch_exams(db)
    except Exception as e:
        logger.error(f"Error fetching exams: {e}")
        raise HTTPException(status_code=500, detail=str(e))
