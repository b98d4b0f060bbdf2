"""
VIS School Site - Configuration Management
==========================================
Centralized configuration with environment variable support.

Usage:
    from vis_site.config import settings

    base_url = settings.supabase_url
    password = settings.admin_password
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings with environment variable overrides."""

    # Hosted backend (data store + edge functions)
    supabase_url: str = "http://localhost:54321"

    # AI gateway used by the quiz generator
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    quiz_model: str = "google/gemini-2.5-flash"
    quiz_temperature: float = 0.7
    quiz_question_count: int = 10

    # Local durable storage (browser localStorage counterpart)
    local_storage_path: Path = field(default_factory=lambda: Path("data/local_storage.db"))

    # Admin gate (UX toggle, not an access control)
    admin_password: str = "VIS-BEST"

    # CORS configuration
    # The edge functions answer any origin; narrow it with CORS_ALLOW_ORIGINS.
    cors_allow_origins: set[str] = field(default_factory=lambda: {"*"})
    cors_allow_headers: tuple[str, ...] = ("authorization", "x-client-info", "apikey", "content-type")

    # Site
    site_name: str = "VIS School"

    # Feature flags
    debug_mode: bool = False

    def __post_init__(self):
        """Load overrides from environment variables."""
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration from environment variables."""
        # Hosted backend
        if supabase_url := os.environ.get("VITE_SUPABASE_URL") or os.environ.get("SUPABASE_URL"):
            self.supabase_url = supabase_url.rstrip("/")

        # AI gateway
        if gateway_url := os.environ.get("AI_GATEWAY_URL"):
            self.ai_gateway_url = gateway_url
        if model := os.environ.get("QUIZ_MODEL"):
            self.quiz_model = model
        if temperature := os.environ.get("QUIZ_TEMPERATURE"):
            self.quiz_temperature = float(temperature)

        # Storage
        if storage_path := os.environ.get("VIS_LOCAL_STORAGE_PATH"):
            self.local_storage_path = Path(storage_path)

        # Admin gate
        if password := os.environ.get("VIS_ADMIN_PASSWORD"):
            self.admin_password = password

        # CORS
        if cors_origins := os.environ.get("CORS_ALLOW_ORIGINS", "").strip():
            if cors_origins == "*":
                self.cors_allow_origins = {"*"}
            else:
                self.cors_allow_origins = {origin.strip() for origin in cors_origins.split(",") if origin.strip()}

        if site_name := os.environ.get("SITE_NAME"):
            self.site_name = site_name

        # Feature flags
        if os.environ.get("DEBUG", "").lower() in ("1", "true"):
            self.debug_mode = True

    @property
    def supabase_publishable_key(self) -> str | None:
        """Get the hosted backend publishable key from environment (never stored in config)."""
        return os.environ.get("VITE_SUPABASE_PUBLISHABLE_KEY") or os.environ.get("SUPABASE_PUBLISHABLE_KEY")

    @property
    def ai_gateway_api_key(self) -> str | None:
        """Get the AI gateway key from environment (never stored in config)."""
        return os.environ.get("LOVABLE_API_KEY")

    @property
    def functions_base_url(self) -> str:
        return f"{self.supabase_url}/functions/v1"

    @property
    def chat_url(self) -> str:
        return f"{self.functions_base_url}/vis-ai-chat"

    @property
    def image_url(self) -> str:
        return f"{self.functions_base_url}/vis-ai-image"


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if _settings.debug_mode:
            logger.info("Settings loaded with debug mode enabled")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings


# Convenience alias
settings = get_settings()


# Admin dashboard categories
GALLERY_CATEGORIES = frozenset(
    {
        "campus",
        "classroom",
        "sports",
        "events",
    }
)

RULE_CATEGORIES = frozenset(
    {
        "general",
        "attendance",
        "dress-code",
        "conduct",
        "academics",
        "facilities",
    }
)

RESOURCE_CATEGORIES = frozenset(
    {
        "general",
        "syllabus",
        "timetable",
        "policies",
        "forms",
    }
)
