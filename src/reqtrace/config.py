# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Storage settings loaded from ``REQTRACE_*`` environment variables."""

    workspace_root: Path = Path(".")
    backend: Literal["local", "forgejo", "memory"] = "local"
    log_level: str = "info"
    log_format: Literal["text", "json"] = "text"

    # Commit identity
    author_name: str = "ReqTrace User"
    author_email: str = "user@reqtrace.local"

    # History
    commit_on_write: bool = True
    commit_counters: bool = False

    # Identifiers
    id_padding: int = Field(3, ge=1)

    # Local git backend
    git_binary: str = "git"

    # Forgejo backend
    forgejo_url: str = "http://forgejo:3000"
    forgejo_token: str = ""
    forgejo_token_file: str = ""
    forgejo_owner: str = "reqtrace"
    forgejo_repo: str = "workspace"
    forgejo_branch: str = "main"

    model_config = SettingsConfigDict(env_prefix="REQTRACE_", env_file=".env")

    @model_validator(mode="after")
    def _validate_forgejo(self) -> "Settings":
        if self.backend == "forgejo" and not (self.forgejo_token or self.forgejo_token_file):
            raise ValueError("forgejo backend requires forgejo_token or forgejo_token_file")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Lazy-loaded to avoid import-time failures."""
    return Settings()
