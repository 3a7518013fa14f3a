"""
Pydantic models for validating the symbolizer configuration.

The Dynaconf settings files and command line overrides are free-form; these
models are the strict contract the rest of the application relies on, so a
misconfiguration is reported once, at startup, as a ConfigurationError.
"""

from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..application.exceptions import ConfigurationError


class SymbolizerSettings(BaseModel):
    """The validated 'symbolizer' section of the settings."""

    work_dir: Path
    mirrors: List[str] = Field(min_length=1)
    concurrent_downloads: int = Field(default=8, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=1, ge=1)
    stale_part_seconds: float = Field(default=600.0, ge=0)
    chunk_size: int = Field(default=65536, ge=1)
    max_carve_depth: int = Field(default=3, ge=1)
    minidump_dump: str = "minidump_dump"
    minidump_stackwalk: str = "minidump_stackwalk"
    machine_readable: bool = False
    force: bool = False
    quiet: bool = False

    @field_validator("mirrors")
    @classmethod
    def _check_mirror_urls(cls, mirrors: List[str]) -> List[str]:
        for mirror in mirrors:
            if not mirror.startswith(("http://", "https://")):
                raise ValueError(f"mirror {mirror!r} is not an http(s) URL")
        return [mirror.rstrip("/") for mirror in mirrors]


def load_settings(
    config: Any, overrides: Optional[Mapping[str, Any]] = None
) -> SymbolizerSettings:
    """
    Validates the 'symbolizer' section of a Dynaconf object.

    Args:
        config: A Dynaconf instance (or any object with a mapping under
                'symbolizer').
        overrides: Values taking precedence over the settings files, such
                   as command line flags. None values are ignored.

    Raises:
        ConfigurationError: If the merged settings are invalid.
    """
    section = dict(config.get("symbolizer") or {})
    section.update(
        {key: value for key, value in (overrides or {}).items() if value is not None}
    )
    try:
        return SymbolizerSettings.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid symbolizer settings: {e}") from e
