# src/graphtune/core/config.py
"""
Configuration schema and loading for graphtune.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from graphtune.contracts.rows import DEFAULT_BACKGROUND, DEFAULT_GROUP_PREFIX

# #RRGGBB or #AARRGGBB
_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class DispatchSettings(BaseModel):
    """How inbound signals reach the row model.

    immediate: every posted signal is applied on the posting call, which is
        right for hosts that already deliver signals on one thread.
    queued: signals are buffered and applied when the consumer calls pump(),
        which is right when the host fires signals from worker threads.
    """

    model_config = {"frozen": True}

    mode: Literal["immediate", "queued"] = Field(
        default="immediate",
        description="Signal application mode",
    )
    max_batch_size: int | None = Field(
        default=None,
        gt=0,
        description="Maximum signals applied per pump (None = drain everything)",
    )


class PresentationSettings(BaseModel):
    """Row naming, colours and initial sort."""

    model_config = {"frozen": True}

    default_sort: Literal["number", "name", "time"] = Field(
        default="number",
        description="Sort criterion applied after run completion until the user picks one",
    )
    group_prefix: str = Field(
        default=DEFAULT_GROUP_PREFIX,
        description="Prefix prepended to group display names",
    )
    default_background: str = Field(
        default=DEFAULT_BACKGROUND,
        description="Background colour for rows that belong to no group",
    )
    current_total_label: str = Field(
        default="Latest Run",
        description="Display name of the current-run total row",
    )
    previous_total_label: str = Field(
        default="Previous Run",
        description="Display name of the previous-run total row",
    )

    @field_validator("default_background")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """Colours must be #RRGGBB or #AARRGGBB."""
        if not _COLOR_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a #RRGGBB or #AARRGGBB colour")
        return v

    @model_validator(mode="after")
    def validate_total_labels_differ(self) -> "PresentationSettings":
        """The two total rows must be distinguishable by name."""
        if self.current_total_label == self.previous_total_label:
            raise ValueError("current_total_label and previous_total_label must differ")
        return self


class ExportSettings(BaseModel):
    """Delimited-text export configuration."""

    model_config = {"frozen": True}

    encoding: str = Field(default="utf-8", description="Output file encoding")
    include_totals: bool = Field(
        default=True,
        description="Write the two total rows along with node and group rows",
    )


class LoggingSettings(BaseModel):
    """structlog configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum log level",
    )
    format: Literal["console", "json"] = Field(
        default="console",
        description="console (human-readable) or json (machine)",
    )


class GraphtuneSettings(BaseModel):
    """Top-level graphtune configuration.

    Every section has defaults, so GraphtuneSettings() is a valid config.
    """

    model_config = {"frozen": True}

    dispatch: DispatchSettings = Field(
        default_factory=DispatchSettings,
        description="Signal dispatch configuration",
    )
    presentation: PresentationSettings = Field(
        default_factory=PresentationSettings,
        description="Row naming and ordering configuration",
    )
    export: ExportSettings = Field(
        default_factory=ExportSettings,
        description="Export configuration",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )


def load_settings(config_path: Path) -> GraphtuneSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (GRAPHTUNE_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: GRAPHTUNE_LOGGING__LEVEL for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated GraphtuneSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="GRAPHTUNE",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic wants lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): _lower_keys(v)
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    return GraphtuneSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def resolve_config(settings: GraphtuneSettings) -> dict[str, Any]:
    """Convert validated settings to a JSON-serializable dict."""
    return settings.model_dump(mode="json")
