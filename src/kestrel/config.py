"""TOML config loading for kestrel.toml."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

LOGGER = logging.getLogger(__name__)

CONFIG_NAME = "kestrel.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class BuildConfig:
    target_triple: str = ""
    int_width: int = 64


@dataclass
class KestrelConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    build: BuildConfig = field(default_factory=BuildConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find kestrel.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> KestrelConfig:
    """Parse a kestrel.toml file into a KestrelConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = KestrelConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
        )

    if "build" in data:
        bld = data["build"]
        int_width = bld.get("int_width", 64)
        if not isinstance(int_width, int) or int_width <= 0:
            raise ValueError(f"{path}: build.int_width must be a positive integer")
        config.build = BuildConfig(
            target_triple=bld.get("target_triple", ""),
            int_width=int_width,
        )

    LOGGER.debug("loaded config %s for package %s", path, config.package.name)
    return config


def config_for(source_path: Path) -> KestrelConfig:
    """Return the config governing ``source_path``, or defaults if there is none."""
    try:
        return load_config(find_config(source_path))
    except FileNotFoundError:
        LOGGER.debug("no %s above %s, using defaults", CONFIG_NAME, source_path)
        return KestrelConfig()
