from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_base_dir() -> Path:
    return Path.home() / ".browser-session"


class TimeoutsConfig(BaseModel):
    action: int = 5000
    wait: int = 10000


class LimitsConfig(BaseModel):
    content_max_length: int = 10000
    text_max_length: int = 5000


class VideoSize(BaseModel):
    width: int = 1280
    height: int = 720


class SessionConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BROWSER_SESSION_",
        env_nested_delimiter="__",
    )

    visible: bool = False
    slow_mo: int = 100
    record_video: bool = False
    video_size: VideoSize = Field(default_factory=VideoSize)
    base_dir: Path = Field(default_factory=_default_base_dir)
    screenshot_dir: Path | None = None
    video_dir: Path | None = None
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("video_size", mode="before")
    @classmethod
    def parse_video_size(cls, v: str | dict | VideoSize) -> dict | VideoSize:
        if isinstance(v, str):
            parts = v.lower().split("x")
            if len(parts) != 2:
                raise ValueError(
                    f"BROWSER_SESSION_VIDEO_SIZE must be in 'WxH' format, got '{v}'"
                )
            return {"width": int(parts[0]), "height": int(parts[1])}
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @property
    def resolved_screenshot_dir(self) -> Path:
        return self.screenshot_dir or self.base_dir / "screenshots"

    @property
    def resolved_video_dir(self) -> Path:
        return self.video_dir or self.base_dir / "videos"

    @property
    def effective_slow_mo(self) -> int:
        """Slow-motion delay only applies when the browser is visible."""
        return self.slow_mo if self.visible else 0


def get_version() -> str:
    """Return the package version string."""
    try:
        from importlib.metadata import version

        return version("browser-session")
    except Exception:
        return "0.1.0"


def load_config(
    config_path: str | None = None,
    visible: bool | None = None,
    record_video: bool | None = None,
    log_level: str | None = None,
) -> SessionConfig:
    """Load session configuration from a JSON file, env vars and CLI flags.

    Priority (highest to lowest):
        1. Explicit keyword overrides (the ``--visible``/``--video`` flags)
        2. BROWSER_SESSION_* environment variables (via pydantic-settings)
        3. Explicitly provided config_path JSON file
        4. Default config file at .browser-session/config.json in cwd
        5. Built-in defaults

    Keyword overrides left as ``None`` are not applied, so a flag that was
    not passed on the command line never masks an env var.
    """
    file_values: dict = {}

    if config_path is not None:
        config_file = Path(config_path)
        if config_file.is_file():
            file_values = json.loads(config_file.read_text(encoding="utf-8"))
    else:
        default_config = Path.cwd() / ".browser-session" / "config.json"
        if default_config.is_file():
            file_values = json.loads(default_config.read_text(encoding="utf-8"))

    # pydantic-settings gives init kwargs priority over env vars, so only
    # file keys that the environment does not set are passed through.
    env_config = SessionConfig()
    env_keys = env_config.model_fields_set
    merged = {k: v for k, v in file_values.items() if k not in env_keys}
    config = SessionConfig(**merged) if merged else env_config

    overrides: dict = {}
    if visible:
        overrides["visible"] = True
    if record_video:
        overrides["record_video"] = True
    if log_level is not None:
        overrides["log_level"] = log_level.upper()
    if overrides:
        config = config.model_copy(update=overrides)

    return config
