import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read once from the environment."""

    db_path: str = "data/artisha.sqlite"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_image_model: str = "gpt-image-1"
    analytics_interval: float = 5.0
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=os.getenv("ARTISHA_DB_PATH", cls.db_path),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            openai_image_model=os.getenv(
                "OPENAI_IMAGE_MODEL", cls.openai_image_model
            ),
            analytics_interval=float(
                os.getenv("ARTISHA_ANALYTICS_INTERVAL", str(cls.analytics_interval))
            ),
            debug=_env_flag("DEBUG"),
        )


settings = Settings.from_env()
