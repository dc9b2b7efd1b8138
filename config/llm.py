from __future__ import annotations  # Configuration schema for LLM routing

import os
from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):  # OpenAI-compatible chat completions endpoint
    name: str
    base_url: str
    endpoint: str = "/chat/completions"
    model: str
    timeout_s: float = Field(default=30.0, ge=0.1)
    max_retries: int = Field(default=1, ge=0)
    api_key_env: str | None = None
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):  # Routes for each AI collaborator
    reviewer: LlmRoute
    reason_evaluator: LlmRoute | None = None
    scorer: LlmRoute | None = None

    def route_for(self, target: str) -> LlmRoute:  # Fall back to the reviewer route
        route = getattr(self, target, None)
        return route if isinstance(route, LlmRoute) else self.reviewer


def load_config(path: Path) -> AppConfig:  # Load configuration from disk
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def default_route(name: str = "groq") -> LlmRoute:  # Route assembled from environment defaults
    return LlmRoute(
        name=name,
        base_url=os.getenv("LLM_BASE_URL", "https://api.groq.com/openai/v1"),
        model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
        api_key_env="GROQ_API_KEY",
    )


def default_config() -> AppConfig:  # Single route shared by every collaborator
    return AppConfig(reviewer=default_route())


__all__ = ["AppConfig", "LlmRoute", "default_config", "default_route", "load_config"]
