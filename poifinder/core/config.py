from pydantic import BaseModel
import os

from ..providers.http import DEFAULT_USER_AGENT


def _csv(value: str) -> list:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings(BaseModel):
    default_radius_m: int = int(os.getenv("POIFINDER_DEFAULT_RADIUS_M", "5000"))
    language: str = os.getenv("POIFINDER_LANGUAGE", "en")
    user_agent: str = os.getenv("POIFINDER_USER_AGENT", DEFAULT_USER_AGENT)
    cache_size: int = int(os.getenv("POIFINDER_CACHE_SIZE", "10"))

    geosearch_timeout_s: float = float(os.getenv("POIFINDER_GEOSEARCH_TIMEOUT_S", "15"))
    tag_query_timeout_s: float = float(os.getenv("POIFINDER_TAG_QUERY_TIMEOUT_S", "25"))
    structured_timeout_s: float = float(os.getenv("POIFINDER_STRUCTURED_TIMEOUT_S", "30"))
    tag_query_min_interval_s: float = float(os.getenv("POIFINDER_TAG_QUERY_MIN_INTERVAL_S", "1.0"))

    enabled_sources: list = _csv(os.getenv("POIFINDER_ENABLED_SOURCES", "geosearch,tag_query,structured_data"))
    log_level: str = os.getenv("POIFINDER_LOG_LEVEL", "INFO")

settings = Settings()
