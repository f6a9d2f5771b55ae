"""Configuration parsing from ``.sonarcov.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sonarcov.coverage.istanbul import DEFAULT_COVERAGE_FILE
from sonarcov.reporters.sonar import DEFAULT_REPORT_FILE

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".sonarcov.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


@dataclass
class ProjectConfig:
    """Project-level configuration."""

    root: str
    """Project root; report paths are written relative to it."""


@dataclass
class InputConfig:
    """Coverage input configuration."""

    coverage_file: str = DEFAULT_COVERAGE_FILE
    """Istanbul JSON coverage file, relative to the project root."""


@dataclass
class ReportConfig:
    """Report output configuration."""

    dir: str = ""
    """Output directory (empty = project root)."""

    file: str = DEFAULT_REPORT_FILE
    """Output file name."""

    sync: bool = True
    """Write synchronously; ``False`` uses the background writer."""


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    """Log level name for the CLI."""


@dataclass
class SonarcovConfig:
    """Complete configuration from ``.sonarcov.yml``."""

    project: ProjectConfig
    """Project configuration."""

    input: InputConfig = field(default_factory=InputConfig)
    """Coverage input configuration."""

    report: ReportConfig = field(default_factory=ReportConfig)
    """Report output configuration."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    """Logging configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""

    @property
    def coverage_path(self) -> Path:
        """Resolved path of the coverage input file."""
        return Path(self.project.root) / self.input.coverage_file

    @property
    def output_dir(self) -> Path:
        """Resolved report output directory."""
        root = Path(self.project.root)
        return root / self.report.dir if self.report.dir else root


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        return {}
    return value


def _value(section: dict[str, Any], key: str, default: Any) -> Any:
    """Return ``section[key]``, treating a missing key or YAML null as unset."""
    value = section.get(key)
    return default if value is None else value


def load_config(root: str | Path) -> SonarcovConfig:
    """Load and parse ``.sonarcov.yml`` from *root*.

    Falls back to defaults and ``SONARCOV_*`` environment variables when the
    YAML file is missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE_NAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        else:
            logger.warning("Ignoring %s: expected a mapping at top level", config_file)

    project_raw = _section(raw, "project")
    project_root = Path(str(_value(project_raw, "root", root_path)))
    if not project_root.is_absolute():
        project_root = (root_path / project_root).resolve()

    input_raw = _section(raw, "input")
    report_raw = _section(raw, "report")
    logging_raw = _section(raw, "logging")

    return SonarcovConfig(
        project=ProjectConfig(root=str(project_root)),
        input=InputConfig(
            coverage_file=str(
                _value(
                    input_raw,
                    "coverage_file",
                    os.environ.get("SONARCOV_COVERAGE_FILE", DEFAULT_COVERAGE_FILE),
                )
            ),
        ),
        report=ReportConfig(
            dir=str(_value(report_raw, "dir", os.environ.get("SONARCOV_REPORT_DIR", ""))),
            file=str(
                _value(
                    report_raw,
                    "file",
                    os.environ.get("SONARCOV_REPORT_FILE", DEFAULT_REPORT_FILE),
                )
            ),
            sync=_parse_bool(_value(report_raw, "sync", True)),
        ),
        logging=LoggingConfig(
            level=str(
                _value(logging_raw, "level", os.environ.get("SONARCOV_LOG_LEVEL", "WARNING"))
            ).upper(),
        ),
        raw=raw,
    )


def validate_config(config: SonarcovConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.input.coverage_file:
        errors.append("input.coverage_file must not be empty")

    if not config.report.file:
        errors.append("report.file must not be empty")
    elif "/" in config.report.file or os.sep in config.report.file:
        errors.append(
            f"report.file must be a file name, use report.dir for directories "
            f"(got: {config.report.file})"
        )

    if config.logging.level not in _LOG_LEVELS:
        errors.append(
            f"logging.level must be one of: {', '.join(sorted(_LOG_LEVELS))} "
            f"(got: {config.logging.level})"
        )

    return errors
