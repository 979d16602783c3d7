"""
elfshrink Configuration Management
===================================

Centralized configuration for the elfshrink toolkit using Python
dataclasses and TOML-based persistence.

Command-line flags always take precedence over values loaded here; the
TOML file only supplies defaults.

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Configs ==========================


@dataclass(frozen=False, slots=True)
class ShrinkSettings:
    """Configuration for the ELF footprint reducer.

    ``buffer_size`` is the chunk length used both by the backward
    trailing-zero scan and by the copy-to-output path.  It only affects
    I/O granularity, never the computed size.
    """

    buffer_size: int = 8192
    strip_zeros: bool = False


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity, log destination, colour."""

    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False
    color: bool = True


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class ShrinkConfig:
    """Master configuration aggregating global and tool settings.

    Usage:
        >>> config = ShrinkConfig.load()                  # from default path
        >>> config = ShrinkConfig.load("custom.toml")     # from custom path
        >>> config.shrink.buffer_size
        8192
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    shrink: ShrinkSettings = field(default_factory=ShrinkSettings)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> ShrinkConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`ShrinkConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
            ValueError: If ``buffer_size`` is not positive.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        config = cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            shrink=cls._build_section(ShrinkSettings, raw.get("shrink", {})),
        )
        if config.shrink.buffer_size <= 0:
            raise ValueError(
                f"shrink.buffer_size must be positive, got {config.shrink.buffer_size}"
            )
        return config

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are silently ignored so that
        forward-compatible config files do not break older code.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)
