"""Page Modules — Configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. Environment variables prefixed with PAGE_MODULES_
    3. System config: /etc/page-modules/config.yaml
    4. User config:   ~/.page-modules/config.yaml
    5. An explicit config file passed to ``Settings.load()``

Settings only influence how the registries are built at startup.  Once the
page tables are frozen nothing here is consulted again.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INTERNAL_PAGE_PATTERN = r"^ajax_"


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class RegistryConfig(BaseModel):
    internal_page_pattern: str = Field(
        default=DEFAULT_INTERNAL_PAGE_PATTERN,
        description=(
            "Regular expression matched against page ids.  Matching pages are "
            "internal/ajax-only endpoints and never receive broadcast modules."
        ),
    )

    @field_validator("internal_page_pattern")
    @classmethod
    def check_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid internal_page_pattern {v!r}: {exc}") from exc
        return v


class ModuleSetConfig(BaseModel):
    enabled: list[str] = Field(
        default_factory=lambda: ["core", "imap_folders"],
        description=(
            "Module sets to register, in order.  Either a built-in name or a "
            "dotted path of the form 'package.module:Attribute'."
        ),
    )
    disabled: list[str] = Field(
        default_factory=list,
        description="Explicitly disabled module sets (overrides 'enabled' and entry points).",
    )
    discover_entry_points: bool = Field(
        default=True,
        description="Also register module sets published under the 'page_modules.module_sets' entry point group.",
    )


class SnapshotConfig(BaseModel):
    path: Path = Path("~/.page-modules/pages.json")


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAGE_MODULES_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    module_sets: ModuleSetConfig = Field(default_factory=ModuleSetConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("snapshot", mode="after")
    @classmethod
    def expand_snapshot_path(cls, v: SnapshotConfig) -> SnapshotConfig:
        v.path = v.path.expanduser()
        return v

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [
            Path("/etc/page-modules/config.yaml"),
            Path.home() / ".page-modules" / "config.yaml",
        ]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)

    def active_module_sets(self) -> list[str]:
        """Return the effective, ordered list of enabled module sets."""
        return [m for m in self.module_sets.enabled if m not in self.module_sets.disabled]


# Module-level singleton, replaced by ``Settings.load()`` at startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
