from dotenv import load_dotenv

# Load env variables FIRST, before importing modules that read settings
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from utils.logger import get_logger

logger = get_logger("main")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For dev only
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from app.routers import catalog
app.include_router(catalog.router, prefix="/api/catalog", tags=["Catalog"])

from app.routers import extraction
app.include_router(extraction.router, prefix="/api/extraction", tags=["Extraction"])

from app.routers import questions
app.include_router(questions.router, prefix="/api/questions", tags=["Questions"])

from app.routers import review
app.include_router(review.router, tags=["Review"])

if not settings.api_keys:
    logger.warning("OPENAI_API_KEYS not found in settings/.env")

@app.get("/api/health")
def health_check():
    return {
        "status": "healthy",
        "project": settings.PROJECT_NAME,
        "version": settings.PROJECT_VERSION,
        "api_keys": len(settings.api_keys),
    }

if __name__ == "__main__":
    import os
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True)
