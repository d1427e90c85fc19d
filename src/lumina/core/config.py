"""Configuration management for Lumina Image Studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LUMINA_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LUMINA_* prefix)
2. .env file in the project root
3. Default values defined in LuminaConfig

Example .env file:
    LUMINA_API_KEY=your-gemini-key
    LUMINA_MODEL_ID=gemini-2.5-flash-image
    LUMINA_SERVER_PORT=7860
    LUMINA_LOG_LEVEL=DEBUG

API Key
-------
The Gemini API key is read from ``LUMINA_API_KEY``.  ``GEMINI_API_KEY`` and
``API_KEY`` are accepted as well so an existing Gemini setup works unchanged.
The key is never validated locally: a missing or rejected key surfaces as an
external-service failure on the first generation request.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

    from lumina.core.config import config

    print(config.model_id)
    print(config.server_port)
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LuminaConfig(BaseSettings):
    """Main configuration for Lumina Image Studio.

    Attributes
    ----------
    Gemini Settings:
        api_key : str | None
            Gemini API key (LUMINA_API_KEY, GEMINI_API_KEY or API_KEY)
        model_id : str
            Gemini model used for image generation

    Server Settings:
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port (1024-65535)

    Logging:
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root log level applied by the ``lumina`` entry point

    Examples
    --------
        >>> custom_config = LuminaConfig(api_key="test-key", server_port=8080)
        >>> custom_config.model_id
        'gemini-2.5-flash-image'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LUMINA_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Gemini settings
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LUMINA_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="Gemini API key (not validated locally)",
    )
    model_id: str = Field(
        default="gemini-2.5-flash-image",
        description="Gemini model ID used for image generation",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the lumina entry point",
    )


# Global configuration instance
# Loads values from environment variables (LUMINA_* prefix) and the .env file.
config = LuminaConfig()
