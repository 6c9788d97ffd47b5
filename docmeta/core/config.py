from __future__ import annotations
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "docmeta-service"
    app_env: str = "dev"
    app_port: int = 8080
    log_level: str = "INFO"

    tika_url: str = "http://tika:9998"
    tika_timeout_sec: float = Field(default=60.0, gt=0.0)
    source_fetch_timeout_sec: float = Field(default=30.0, gt=0.0)
    # symbolic path key -> base location (directory prefix or URL prefix), e.g. {"docs": "/srv/docs/"}
    path_keys: Dict[str, str] = Field(default_factory=dict)
    reject_unparsed_types: bool = True

    number_decimal_separator: str = Field(default=".", min_length=1, max_length=1)
    number_group_separator: str = Field(default=",", min_length=1, max_length=1)


settings = Settings()
