from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Exam Question Extractor"
    PROJECT_VERSION: str = "1.0.0"

    # Supabase Configuration
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None  # Anon Key
    SUPABASE_SERVICE_KEY: Optional[str] = None  # Service Role Key for inserts
    QUESTIONS_TABLE: str = "questions"

    # AI Config
    # Comma separated; every key is tried once before an extraction gives up
    OPENAI_API_KEYS: str = ""
    OPENAI_API_URL: str = "https://api.openai.com/v1/chat/completions"
    OPENAI_MODEL: str = "gpt-4o"
    EXTRACTION_MAX_TOKENS: int = 4000
    EXTRACTION_TEMPERATURE: float = 0.1
    RETRY_BACKOFF_SECONDS: float = 1.0
    PAGE_MEMORY_WINDOW: int = 3

    # PDF rendering
    RENDER_SCALE: float = 2.0
    JPEG_QUALITY: int = 90
    MAX_UPLOADS: int = 20

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def api_keys(self) -> List[str]:
        return [key.strip() for key in self.OPENAI_API_KEYS.split(",") if key.strip()]

settings = Settings()
