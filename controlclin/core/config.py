from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "ControlClin"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Local durable store (one JSON blob under a fixed key)
    LOCAL_STORE_URL: str = "sqlite:///./controlclin_local.db"
    LOCAL_STORE_KEY: str = "CONTROLCLIN_DB_V9_MULTI_PLAN"
    LOCAL_STORE_QUOTA_BYTES: int = 5 * 1024 * 1024

    # Remote document store
    REMOTE_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"
    REMOTE_LEGACY_KEY: str = "controlclin_shared"
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    # Credentials of the built-in identity service
    IDENTITY_STORE_URL: str = "sqlite:///./controlclin_identity.db"

    DEFAULT_TENANT_ID: str = "c1"

    # Insecure development login: never enable outside demos
    DEV_AUTH_BYPASS: bool = False
    DEV_BYPASS_PASSWORD: str = "123"

    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8
    BCRYPT_ROUNDS: int = 12

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"

    class Config:
        case_sensitive = True
        env_file = ".env"

settings = Settings()
