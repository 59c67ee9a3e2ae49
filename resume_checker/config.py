"""
Resume Checker Configuration
=============================
Centralized configuration with environment variable overrides.
Provider keys, model names, timeouts and auth mode live here.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load .env from the project root (next to pyproject.toml)
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / ".env")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API service."""

    # LLM provider
    llm_provider: str = "groq"             # groq | gemini
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 3000
    llm_timeout_seconds: float = 60.0

    # Supabase
    supabase_url: str = ""
    supabase_service_key: str = ""
    supabase_jwt_secret: str = ""

    # Auth
    auth_provider: str = "supabase"        # supabase | local
    jwt_secret: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 24

    # HTTP
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    def api_key_for(self, provider: Optional[str] = None) -> str:
        match (provider or self.llm_provider):
            case "gemini":
                return self.gemini_api_key
            case _:
                return self.groq_api_key


def _split_origins(raw: str) -> List[str]:
    if raw.strip() == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def load_settings() -> Settings:
    """Load settings with environment variable overrides."""
    overrides = {}
    env_map = {
        "LLM_PROVIDER": ("llm_provider", str.lower),
        "GROQ_API_KEY": ("groq_api_key", str),
        "GROQ_MODEL": ("groq_model", str),
        "GEMINI_API_KEY": ("gemini_api_key", str),
        "GEMINI_MODEL": ("gemini_model", str),
        "LLM_TEMPERATURE": ("llm_temperature", float),
        "LLM_MAX_TOKENS": ("llm_max_tokens", int),
        "LLM_TIMEOUT": ("llm_timeout_seconds", float),
        "SUPABASE_URL": ("supabase_url", str),
        "SUPABASE_JWT_SECRET": ("supabase_jwt_secret", str),
        "AUTH_PROVIDER": ("auth_provider", str.lower),
        "JWT_SECRET": ("jwt_secret", str),
        "TOKEN_TTL_HOURS": ("token_ttl_hours", int),
        "ALLOWED_ORIGINS": ("allowed_origins", _split_origins),
    }
    for env_key, (field_name, cast_fn) in env_map.items():
        val = os.getenv(env_key)
        if val is not None:
            try:
                overrides[field_name] = cast_fn(val)
            except (ValueError, TypeError):
                pass

    # Try both possible env var names for backward compatibility
    service_key = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if service_key:
        overrides["supabase_service_key"] = service_key

    return Settings(**overrides)
