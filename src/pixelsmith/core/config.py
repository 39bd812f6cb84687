"""Configuration management for Pixelsmith.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the PIXELSMITH_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (PIXELSMITH_* prefix, plus a few bare provider names)
2. .env file in the project root
3. Default values defined in PixelsmithConfig

Example .env file:
    PIXELSMITH_OPENAI_API_KEY=sk-...
    PIXELSMITH_USE_DOCUMENT_STORE=true
    PIXELSMITH_DOCUMENT_STORE_PATH=data/pixelsmith.db
    PIXELSMITH_PROVIDER_TIMEOUT=30

Provider credentials are also accepted under their conventional names
(``OPENAI_API_KEY``, ``STABILITY_API_KEY``) and the backend flag under
``USE_FIRESTORE`` so existing deployments keep working.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Code that needs different values (tests, scripts) builds its own
``PixelsmithConfig`` and passes it explicitly.

Usage Example
-------------
    from pixelsmith.core.config import config

    print(config.provider_timeout)
    print(config.use_document_store)
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PixelsmithConfig(BaseSettings):
    """Main configuration for Pixelsmith.

    Attributes
    ----------
    Provider Settings:
        openai_api_key : str | None
            Credential for the DALL-E style provider
        openai_base_url : str
            Base URL of the OpenAI REST API
        openai_image_model : str
            Provider-side model name sent with every OpenAI request
        stability_api_key : str | None
            Credential for the Stable-Diffusion style provider
        stability_base_url : str
            Base URL of the Stability REST API
        stability_engine : str
            Stability engine identifier
        provider_timeout : float
            Bounded wait (seconds) applied to every provider call

    Generation Settings:
        min_prompt_length : int
            Prompts shorter than this get a quality qualifier appended
        default_edit_model : str
            Model used by face/object editing when the request names none

    Storage Settings:
        use_document_store : bool
            Select the durable document-store backend instead of memory
        document_store_path : Path
            SQLite file that holds the document-store collections

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        max_upload_bytes : int
            Largest accepted image upload
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root logging level used by the CLI entry point

    Examples
    --------
        >>> custom_config = PixelsmithConfig(
        ...     use_document_store=True,
        ...     document_store_path="/tmp/pixelsmith.db",
        ...     provider_timeout=5,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIXELSMITH_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # OpenAI (DALL-E) provider
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PIXELSMITH_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="API key for the OpenAI images endpoint",
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    openai_image_model: str = Field(
        default="dall-e-3",
        description="Provider-side model name for OpenAI image requests",
    )

    # Stability (Stable Diffusion) provider
    stability_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PIXELSMITH_STABILITY_API_KEY", "STABILITY_API_KEY"),
        description="API key for the Stability generation endpoint",
    )
    stability_base_url: str = Field(default="https://api.stability.ai")
    stability_engine: str = Field(default="stable-diffusion-xl-1024-v1-0")

    provider_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a provider before giving up",
    )

    # Generation behaviour
    min_prompt_length: int = Field(
        default=15,
        ge=0,
        description="Text-to-image prompts shorter than this are enhanced",
    )
    default_edit_model: str = Field(
        default="dalle",
        description="Model used by edit-face / edit-objects when none is requested",
    )

    # Storage backend
    use_document_store: bool = Field(
        default=False,
        validation_alias=AliasChoices("PIXELSMITH_USE_DOCUMENT_STORE", "USE_FIRESTORE"),
        description="Use the durable document store instead of in-memory maps",
    )
    document_store_path: Path = Field(
        default=Path("data/pixelsmith.db"),
        description="SQLite file backing the document store",
    )

    # Server settings
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=5000, ge=1024, le=65535)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


# Global configuration instance
config = PixelsmithConfig()
