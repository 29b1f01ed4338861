"""
Core settings and environment variables for UrbanFix.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """
    
    # Application
    APP_NAME: str = "UrbanFix"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    
    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    
    # In-memory document store for local development and tests
    USE_MOCK_DB: bool = False
    
    # Classification
    AI_ENABLED: bool = True  # If False, only the keyword classifier is used
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_CHAT_MODEL: str = "gpt-4o-mini"
    OPENAI_TRANSCRIPTION_MODEL: str = "whisper-1"
    AI_TIMEOUT_SECONDS: float = 10.0  # Well below the client library default

    # Media storage - audio is only downloaded from under this URL prefix
    MEDIA_BASE_URL: Optional[str] = None  # e.g. https://media.example.com/issues/

    # Sequential numbering
    ISSUE_NUMBER_START: int = 1000
    TEAM_NUMBER_START: int = 1000
    
    # Public explore listing
    EXPLORE_PAGE_SIZE: int = 10
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"
    
    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
