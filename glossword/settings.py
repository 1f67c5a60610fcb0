from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "gloss-word/0.4 "
    "(English dictionary lookup utility; https://github.com/theodore-s-beers/gloss-word)"
)


def _default_data_dir() -> Path:
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / "gloss-word"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GLOSSWORD_", extra="ignore")

    data_dir: Path | None = None

    # Remote sources
    definition_base_url: str = "https://www.thefreedictionary.com/"
    etymology_base_url: str = "https://www.etymonline.com/word/"
    http_timeout_s: float = Field(default=15.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT

    # External converter
    pandoc_bin: str = "pandoc"
    pandoc_timeout_s: float = Field(default=60.0, gt=0)

    # Cache maintenance
    trash_on_clear: bool = True

    log_level: str = "WARNING"

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir or _default_data_dir()

    @property
    def db_path(self) -> Path:
        return self.resolved_data_dir / "entries.sqlite3"

    @property
    def trash_dir(self) -> Path:
        return self.resolved_data_dir / "trash"


# Singleton instance - import this instead of creating Settings()
settings = Settings()
