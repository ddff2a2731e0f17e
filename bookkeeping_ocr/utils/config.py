"""Configuration management for the document OCR pipeline.

Loads and validates YAML configuration with sensible defaults
for preprocessing, OCR, AI providers, and document storage.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_CONTENT_TYPES: list[str] = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/tiff",
    "image/bmp",
    "application/pdf",
]


class PreprocessingConfig(BaseModel):
    """Configuration for image preprocessing pipeline."""

    deskew_method: str = "none"
    deskew_angle_threshold: float = 0.5
    contrast_scale: float = 1.2
    contrast_offset: float = 10.0


class OCRConfig(BaseModel):
    """Configuration for the OCR providers and fallback chain."""

    tesseract_cmd: str | None = None
    languages: str = "tur+eng"
    psm: int = 1
    oem: int = 1
    pdf_dpi: int = 300
    confidence_threshold: float = 0.7


class AIConfig(BaseModel):
    """Configuration for the AI text and vision endpoints."""

    api_key: str | None = None
    base_url: str | None = None
    text_model: str = "gpt-4o-mini"
    vision_model: str = "gpt-4o"
    timeout_seconds: float = 60.0
    vision_max_tokens: int = 1000


class StorageConfig(BaseModel):
    """Configuration for uploaded document storage."""

    upload_dir: str = "uploads/documents"
    max_file_size: int = MAX_FILE_SIZE
    allowed_content_types: list[str] = Field(
        default_factory=lambda: list(ALLOWED_CONTENT_TYPES)
    )


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()


def resolve_api_key(configured: str | None = None) -> str:
    """Resolve the AI provider credential.

    Uses the configured value, falling back to the ``OPENAI_API_KEY``
    environment variable. Whitespace, surrounding double quotes, and a
    leading ``Bearer `` prefix are stripped.

    Args:
        configured: Key from the application settings, if any.

    Returns:
        The cleaned key, or an empty string when none is available.
    """
    key = configured
    if key is None or not key.strip():
        key = os.environ.get("OPENAI_API_KEY")
    if key is None:
        return ""

    key = key.strip()
    if len(key) > 1 and key.startswith('"') and key.endswith('"'):
        key = key[1:-1].strip()
    if key.lower().startswith("bearer "):
        key = key[7:].strip()
    return key
