from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_PREFIX_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _normalize_base_url(value: str) -> str:
    url = (value or "").strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ValueError("must be an absolute http(s) URL")
    return url


PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class BilibiliConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_base: str = "https://api.vc.bilibili.com"
    site_base: str = "https://www.bilibili.com"
    timeout_seconds: NonNegativeFloat = 15.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )
    cookie_env_prefix: str = "BILIBILI_COOKIE_"

    @field_validator("api_base", "site_base")
    @classmethod
    def _base_must_be_url(cls, v: str) -> str:
        return _normalize_base_url(v)

    @field_validator("cookie_env_prefix")
    @classmethod
    def _prefix_must_be_env_name(cls, v: str) -> str:
        name = (v or "").strip()
        if not _ENV_PREFIX_RE.fullmatch(name):
            raise ValueError("must be a valid environment variable name prefix")
        return name


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # None keeps author identities in memory for the process lifetime.
    path: str | None = None


class RetrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: PositiveInt = 3
    base_delay_seconds: NonNegativeFloat = 0.5
    max_delay_seconds: NonNegativeFloat = 10.0
    jitter_ratio: float = Field(0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _max_must_cover_base(self) -> "RetrySettings":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self


class DisplayDefaults(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    show_emoji: bool = False
    disable_embed: bool = False
    use_avid: bool = False
    direct_link: bool = False
    display_full_article: bool = False


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bilibili: BilibiliConfig = Field(default_factory=BilibiliConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    display: DisplayDefaults = Field(default_factory=DisplayDefaults)
