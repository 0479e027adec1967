"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (cliente HTTP) y servicios (ventana de debounce)
  lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.theme import Theme


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "character-browser"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "character-browser"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "character-browser"
    return Path.home() / ".config" / "character-browser"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Escribe o actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# character-browser user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Settings de la aplicación.

    Por qué pydantic-settings:
    - Tipado y validación en el borde (env vars) sin filtrarse al Core.
    - Un solo contrato de configuración para la CLI, el adaptador HTTP y el
      controlador.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHARBROWSER_",
        extra="ignore",
        case_sensitive=False,
        # Project .env first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="https://rickandmortyapi.com/api",
        min_length=8,
        description="Root URL of the character catalog service.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="character-browser/0.1",
        min_length=1,
        description="User-Agent sent to the catalog service.",
    )

    debounce_seconds: float = Field(
        default=0.3,
        ge=0,
        le=10,
        description="Quiet period after the last edit before a fetch is issued.",
    )
    base_url: str = Field(
        default="http://localhost:3000/",
        min_length=1,
        description="Page href used for shareable links when none is supplied.",
    )

    theme: Theme = Field(
        default_factory=Theme.default,
        description="Color theme for terminal rendering (light/dark).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI (DEBUG, INFO, WARNING, ...).",
    )
