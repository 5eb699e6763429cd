"""Configuration management for sheet-sync.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SHEETSYNC_ prefix, or via a .env file in the working directory.

Environment Variables:
    SHEETSYNC_DATE_COLUMNS: Comma-separated date column names (default: 日期)
    SHEETSYNC_MONTH_COLUMNS: Comma-separated month column names (default: 月份)
    SHEETSYNC_PERCENT_SUFFIX: Column name suffix marking percentages (default: %)
    SHEETSYNC_PERCENT_FRACTION_THRESHOLD: Max magnitude read as a fraction (default: 2.0)
    SHEETSYNC_PERCENT_DECIMALS: Decimal places in "33.2%" strings (default: 1)
    SHEETSYNC_NUMBER_FORMAT: Display format for formula cells (default: 0.00)
    SHEETSYNC_PERCENT_NUMBER_FORMAT: Display format for percent formula cells (default: 0.00%)
    SHEETSYNC_FORMULA_DIVERGENCE: "error" or "warn" when rows disagree (default: error)
    SHEETSYNC_SCHEMA_REF: Value written to "$schema" (default: ../schema/schema.json)
    SHEETSYNC_DATA_DIR: JSON dataset directory (default: data)
    SHEETSYNC_TEMPLATE_DIR: Generated workbook directory (default: render-template)
    SHEETSYNC_RENDER_DATA_DIR: Edited workbook directory (default: render-data)
    SHEETSYNC_BACKUP_DIR: Backup directory for overwritten JSON (default: backup)
    SHEETSYNC_TEMPLATE_SUFFIX: Suffix of generated workbook names (default: -模板)
    SHEETSYNC_JSON_INDENT: Indentation of written JSON (default: 2)
    SHEETSYNC_LOG_LEVEL: Logging level (default: INFO)
    SHEETSYNC_DEBUG: Enable debug mode (default: false)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ColumnConventions:
    """Naming conventions that give columns special value semantics."""

    date_columns: frozenset[str] = field(default_factory=lambda: frozenset({"日期"}))
    month_columns: frozenset[str] = field(
        default_factory=lambda: frozenset({"月份"})
    )
    percent_suffix: str = "%"
    percent_fraction_threshold: float = 2.0
    percent_decimals: int = 1

    def is_date(self, column: str) -> bool:
        return column in self.date_columns

    def is_month(self, column: str) -> bool:
        return column in self.month_columns

    def is_calendar(self, column: str) -> bool:
        """Return True for columns stored as canonical date/month text."""
        return self.is_date(column) or self.is_month(column)

    def is_percent(self, column: str) -> bool:
        return bool(self.percent_suffix) and column.endswith(self.percent_suffix)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        SHEETSYNC_DATE_COLUMNS=日期,下单日期
        SHEETSYNC_FORMULA_DIVERGENCE=warn
        SHEETSYNC_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Column Conventions
    # =========================================================================

    date_columns: str = "日期"
    """Comma-separated names of columns holding YYYY-MM-DD dates."""

    month_columns: str = "月份"
    """Comma-separated names of columns holding YYYY-MM months."""

    percent_suffix: str = "%"
    """Column names ending with this suffix hold percentages."""

    percent_fraction_threshold: float = 2.0
    """Numbers with magnitude <= threshold are read as fractions (0.332 -> 33.2%)."""

    percent_decimals: int = 1
    """Decimal places used when rendering percentage strings."""

    # =========================================================================
    # Workbook Output Settings
    # =========================================================================

    number_format: str = "0.00"
    """Display format applied to formula cells."""

    percent_number_format: str = "0.00%"
    """Display format applied to formula cells in percentage columns."""

    # =========================================================================
    # Workbook Input Settings
    # =========================================================================

    formula_divergence: Literal["error", "warn"] = "error"
    """How to react when rows of one column decompile to different formulas."""

    schema_ref: str = "../schema/schema.json"
    """Value stored in the "$schema" key of datasets read from workbooks."""

    # =========================================================================
    # Workspace Layout
    # =========================================================================

    data_dir: str = "data"
    template_dir: str = "render-template"
    render_data_dir: str = "render-data"
    backup_dir: str = "backup"
    template_suffix: str = "-模板"

    json_indent: int = 2
    """Indentation used when writing dataset JSON."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with tracebacks on CLI errors."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("percent_fraction_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError(
                f"percent_fraction_threshold must be non-negative, got {v}"
            )
        return v

    @field_validator("percent_decimals")
    @classmethod
    def validate_decimals(cls, v: int) -> int:
        if not 0 <= v <= 10:
            raise ValueError(f"percent_decimals must be between 0 and 10, got {v}")
        return v

    @field_validator("json_indent")
    @classmethod
    def validate_indent(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"json_indent must be non-negative, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def date_columns_list(self) -> list[str]:
        return _split_names(self.date_columns)

    @property
    def month_columns_list(self) -> list[str]:
        return _split_names(self.month_columns)

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def column_conventions(self) -> ColumnConventions:
        """Build the conventions value threaded into the value normalizer."""
        return ColumnConventions(
            date_columns=frozenset(self.date_columns_list),
            month_columns=frozenset(self.month_columns_list),
            percent_suffix=self.percent_suffix,
            percent_fraction_threshold=self.percent_fraction_threshold,
            percent_decimals=self.percent_decimals,
        )

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary for diagnostics."""
        return {
            "date_columns": self.date_columns_list,
            "month_columns": self.month_columns_list,
            "percent_suffix": self.percent_suffix,
            "percent_fraction_threshold": self.percent_fraction_threshold,
            "percent_decimals": self.percent_decimals,
            "number_format": self.number_format,
            "percent_number_format": self.percent_number_format,
            "formula_divergence": self.formula_divergence,
            "schema_ref": self.schema_ref,
            "data_dir": self.data_dir,
            "template_dir": self.template_dir,
            "render_data_dir": self.render_data_dir,
            "backup_dir": self.backup_dir,
            "template_suffix": self.template_suffix,
            "json_indent": self.json_indent,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def validate_settings_on_startup(s: Settings) -> None:
    """Warn about setting combinations that silently change conversions.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    overlap = sorted(set(s.date_columns_list) & set(s.month_columns_list))
    if overlap:
        logger.warning(
            f"Columns listed as both date and month columns: {overlap}. "
            "They will be normalized as months."
        )

    if not s.percent_suffix:
        logger.warning(
            "SHEETSYNC_PERCENT_SUFFIX is empty; only cells with a percent "
            "number format will be read as percentages."
        )

    if s.formula_divergence == "warn":
        logger.warning(
            "Formula divergence policy is 'warn': rows whose formula differs "
            "from the first row will lose their formula on xlsx -> json."
        )

    logger.debug(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"formula_divergence={s.formula_divergence}, "
        f"date_columns={s.date_columns_list}, month_columns={s.month_columns_list}"
    )


# Create the global settings instance
settings = Settings()
