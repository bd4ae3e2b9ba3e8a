"""Configuration for the scan pipeline.

Values come from the environment, with a ``.env`` file loaded first:

Example .env:
    GEMINI_API_KEY=your-key
    GEMINI_MODEL=gemini-2.0-flash-exp
    HTTP_TIMEOUT_SECONDS=10
    LOG_LEVEL=DEBUG
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from foodlens.domain.shared.errors import ConfigurationError
from foodlens.domain.shared.inference import (
    ANALYSIS_GENERATION,
    CHAT_GENERATION,
    GenerationSettings,
)
from foodlens.infrastructure.ai.gemini_client import GeminiClient
from foodlens.infrastructure.openfoodfacts.api_client import OpenFoodFactsClient

_TRUE_VALUES = {"1", "true", "yes", "on"}


class PipelineSettings(BaseModel):
    """
    Runtime settings for the pipeline's external services.

    Example:
        >>> settings = PipelineSettings.from_env()
        >>> settings.gemini_model
        'gemini-2.0-flash-exp'
    """

    model_config = ConfigDict(frozen=True)

    gemini_api_key: Optional[str] = Field(None, repr=False)
    gemini_model: str = GeminiClient.DEFAULT_MODEL
    gemini_base_url: str = GeminiClient.BASE_URL
    openfoodfacts_base_url: str = OpenFoodFactsClient.BASE_URL
    http_timeout_seconds: float = Field(10, gt=0)
    http_max_attempts: int = Field(2, ge=1)
    analysis_temperature: float = Field(ANALYSIS_GENERATION.temperature, ge=0.0, le=2.0)
    analysis_max_output_tokens: int = Field(ANALYSIS_GENERATION.max_output_tokens, gt=0)
    chat_temperature: float = Field(CHAT_GENERATION.temperature, ge=0.0, le=2.0)
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> PipelineSettings:
        """
        Build settings from environment variables.

        Args:
            env_file: Path of the .env file (python-dotenv search if None)

        Raises:
            ConfigurationError: If a variable has an invalid value
        """
        load_dotenv(env_file)

        values = {
            "gemini_api_key": os.getenv("GEMINI_API_KEY") or None,
            "gemini_model": os.getenv("GEMINI_MODEL"),
            "gemini_base_url": os.getenv("GEMINI_BASE_URL"),
            "openfoodfacts_base_url": os.getenv("OPENFOODFACTS_BASE_URL"),
            "http_timeout_seconds": os.getenv("HTTP_TIMEOUT_SECONDS"),
            "http_max_attempts": os.getenv("HTTP_MAX_ATTEMPTS"),
            "analysis_temperature": os.getenv("ANALYSIS_TEMPERATURE"),
            "analysis_max_output_tokens": os.getenv("ANALYSIS_MAX_OUTPUT_TOKENS"),
            "chat_temperature": os.getenv("CHAT_TEMPERATURE"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        log_json = os.getenv("LOG_JSON")
        if log_json is not None:
            values["log_json"] = log_json.strip().lower() in _TRUE_VALUES

        try:
            return cls(**{key: value for key, value in values.items() if value is not None})
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid pipeline configuration: {e}") from e

    def require_gemini_key(self) -> str:
        """
        Raises:
            ConfigurationError: If GEMINI_API_KEY is not set
        """
        if not self.gemini_api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY not found in environment. Set it in .env file."
            )
        return self.gemini_api_key

    def analysis_generation(self) -> GenerationSettings:
        return ANALYSIS_GENERATION.model_copy(
            update={
                "temperature": self.analysis_temperature,
                "max_output_tokens": self.analysis_max_output_tokens,
            }
        )

    def chat_generation(self) -> GenerationSettings:
        return CHAT_GENERATION.model_copy(update={"temperature": self.chat_temperature})
