from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/austin_move_finder.db"

    REDIS_URL: Optional[str] = None

    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    UPLOAD_DIR: str = "./data/uploads"
    MAX_UPLOAD_SIZE: int = 25 * 1024 * 1024  # 25MB
    MAX_UPLOAD_FILES: int = 10

    RATE_LIMIT: int = 5
    RATE_LIMIT_WINDOW: int = 3600  # 1 hour
    RATE_LIMIT_BACKEND: str = "memory"  # memory | redis
    # comma separated peers whose X-Forwarded-For header is honoured
    TRUSTED_PROXIES: str = ""

    HUGGINGFACE_API_KEY: Optional[str] = None
    DETECTION_API_URL: str = "https://api-inference.huggingface.co/models/facebook/detr-resnet-50"
    DETECTION_CONFIDENCE_THRESHOLD: float = 0.3
    DETECTION_TIMEOUT: int = 30

    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_START_TLS: bool = True
    SMTP_TIMEOUT: int = 10
    FROM_EMAIL: str = "noreply@austinmovefinder.com"
    TO_EMAIL: str = "quotes@austinmovefinder.com"

    SEED_PRICING_RULES: bool = True

    API_TITLE: str = "Austin Move Finder API"
    API_DESCRIPTION: str = "Backend API for moving quote requests, AI item detection and pricing"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    @property
    def trusted_proxies(self) -> List[str]:
        return [p.strip() for p in self.TRUSTED_PROXIES.split(",") if p.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
