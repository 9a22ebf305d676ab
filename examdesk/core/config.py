import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from typing import List

load_dotenv()

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "examdesk"

    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecretkey")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    # Sessions live until logout; the expiry only bounds a leaked token
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

    OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "4"))
    OTP_TTL_MINUTES: int = int(os.getenv("OTP_TTL_MINUTES", "5"))
    OTP_RATE_LIMIT: int = int(os.getenv("OTP_RATE_LIMIT", "3"))
    OTP_RATE_WINDOW_MINUTES: int = int(os.getenv("OTP_RATE_WINDOW_MINUTES", "60"))
    # Development only: echo the code back in the send-otp response
    OTP_EXPOSE_CODE: bool = _env_bool("OTP_EXPOSE_CODE", "true")

    SMS_GATEWAY_URL: str = os.getenv("SMS_GATEWAY_URL", "")
    SMS_API_KEY: str = os.getenv("SMS_API_KEY", "")
    SMS_SENDER: str = os.getenv("SMS_SENDER", "")
    SMS_TIMEOUT_SECONDS: float = float(os.getenv("SMS_TIMEOUT_SECONDS", "10"))

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "examdesk")

    MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "./media")
    AVATAR_MAX_BYTES: int = int(os.getenv("AVATAR_MAX_BYTES", str(10 * 1024 * 1024)))

    class Config:
        case_sensitive = True


def get_cors_origins() -> List[str]:
    """
    Get the CORS origins from environment or use defaults
    """
    cors_origins_env = os.getenv("CORS_ORIGINS", "")
    if cors_origins_env:
        origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
        if origins:
            return origins

    return DEFAULT_CORS_ORIGINS

settings = Settings()
