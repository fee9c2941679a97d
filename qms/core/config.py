"""
QMS FastAPI Configuration
Core settings for the quotation / order management API
"""
from decimal import Decimal
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Info
    APP_NAME: str = "QMS API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./qms.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]  # Change in production
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # Dashboard frontend
        "http://localhost:5173",
    ]

    # File Storage
    UPLOAD_DIR: Path = Path("uploads")
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = [
        ".jpg", ".jpeg", ".png", ".gif", ".pdf", ".csv",
        ".xls", ".xlsx", ".doc", ".docx", ".txt",
    ]
    ALLOWED_UPLOAD_MIME_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/pdf",
        "text/csv",
        "text/plain",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "app.log"
    ERROR_LOG_FILE: str = "error.log"
    LOG_TO_FILE: bool = True

    # Rate limiting (fixed window per client address)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 1000
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    # Proxies whose X-Forwarded-For is honoured; empty means key on the socket address
    TRUSTED_PROXIES: List[str] = []

    # Document numbering
    NUMBER_MAX_RETRIES: int = 3
    NUMBER_FALLBACK_ATTEMPTS: int = 5

    # Business Logic Settings
    LEDGER_BALANCE_TOLERANCE: Decimal = Decimal("0.01")
    INVOICE_DUE_DAYS: int = 30
    BILL_DUE_DAYS: int = 30
    ALLOW_BILL_OVERPAYMENT: bool = True

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100

    # API Configuration
    API_V1_STR: str = "/api/v1"
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"
    OPENAPI_URL: str = "/openapi.json"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Restrict to known deployment environments"""
        v = v.lower()
        if v not in ("development", "production", "test"):
            raise ValueError("ENVIRONMENT must be development, production or test")
        return v

    @field_validator("UPLOAD_DIR", mode="before")
    @classmethod
    def create_upload_dir(cls, v):
        """Ensure upload directory exists"""
        path = Path(v) if isinstance(v, str) else v
        path.mkdir(exist_ok=True, parents=True)
        return path

    @field_validator("LOG_DIR", mode="before")
    @classmethod
    def create_log_dir(cls, v):
        """Ensure logs directory exists"""
        path = Path(v) if isinstance(v, str) else v
        path.mkdir(exist_ok=True, parents=True)
        return path

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Global settings instance
settings = Settings()
