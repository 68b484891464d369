from pydantic import BaseModel
import os

class Settings(BaseModel):
    dsn: str | None = os.getenv("ALISA_DSN")
    pop_api_version: str = os.getenv("ALISA_POP_API_VERSION", "2019-12-26")
    http_timeout_seconds: float = float(os.getenv("ALISA_HTTP_TIMEOUT", 30))
    log_level: str = os.getenv("ALISA_LOG_LEVEL", "INFO")
    log_dir: str | None = os.getenv("ALISA_LOG_DIR")

settings = Settings()
