from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# .env beside the repository root, same as running from a checkout
env_path = Path(__file__).parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    API_URL: str = "http://localhost:4000/api"
    REQUEST_TIMEOUT: float = 15.0

    # persisted keys: token and userType
    SESSION_FILE: Path = Path.home() / ".etimad_mart" / "session.json"

    LOW_STOCK_POLL_SECONDS: int = 5 * 60
    PAGE_SIZE: int = 10
    CACHE_TTL_SECONDS: int = 120

    DEBUG: bool = False


settings = Settings()
