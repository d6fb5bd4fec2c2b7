"""Pydantic models describing the service endpoint and pipeline tuning."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_BASE_URL = "https://appsheettest1.azurewebsites.net/sample/"


class EndpointConfig(BaseModel):
    """Where the listing and detail routes live."""

    base_url: str = DEFAULT_BASE_URL
    list_route: str = "list"
    detail_route: str = "detail/"
    token_param: str = "token"
    timeout: float = 15.0
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("base_url", mode="before")
    @classmethod
    def _coerce_base_url(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("base_url cannot be empty")
        if not text.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        if not text.endswith("/"):
            text += "/"
        return text

    @field_validator("list_route", "detail_route", mode="before")
    @classmethod
    def _strip_leading_slash(cls, value: Any) -> str:
        return str(value or "").lstrip("/")

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value

    def list_url(self, token: str | None = None) -> str:
        url = self.base_url + self.list_route
        if token:
            url += f"?{self.token_param}={quote(token, safe='')}"
        return url

    def detail_url(self, identifier: str) -> str:
        return self.base_url + self.detail_route + quote(str(identifier), safe="")


class PipelineConfig(BaseModel):
    """Knobs for the pagination / detail pipeline."""

    result_count: int = 5
    # None keeps one worker per identifier in a batch
    max_detail_workers: int | None = None
    run_timeout: float | None = None
    queue_poll_interval: float = 0.5

    @model_validator(mode="after")
    def _validate_bounds(self) -> "PipelineConfig":
        if self.result_count < 1:
            raise ValueError("result_count must be >= 1")
        if self.max_detail_workers is not None and self.max_detail_workers < 1:
            raise ValueError("max_detail_workers must be >= 1 when set")
        if self.run_timeout is not None and self.run_timeout <= 0:
            raise ValueError("run_timeout must be > 0 when set")
        if self.queue_poll_interval <= 0:
            raise ValueError("queue_poll_interval must be > 0")
        return self


class GlobalConfig(BaseModel):
    """Top-level configuration persisted in ``data/config.yaml``."""

    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    enable_progress: bool = True


__all__ = ["DEFAULT_BASE_URL", "EndpointConfig", "GlobalConfig", "PipelineConfig"]
