"""Per-project build configuration (``UnrealNvim.json``).

The file lives beside the ``.uproject`` and describes the engine location
and the build targets generation can use. Its format is versioned; files
written by an incompatible version are rejected rather than migrated.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..pathutil import normalize_path

logger = logging.getLogger("unreal-codegen")

# Set UNREAL_CODEGEN_DEBUG=1 to see the exact commands being run
DEBUG = os.environ.get("UNREAL_CODEGEN_DEBUG", "").lower() in ("1", "true", "yes")

CONFIG_FILE_NAME = "UnrealNvim.json"
CONFIG_VERSION = "0.0.2"
DEFAULT_CONFIGURATIONS = ("DebugGame", "Development", "Shipping")


class ConfigError(ValueError):
    """The project configuration is missing, malformed or incompatible."""


@dataclass
class BuildTarget:
    target_name: str
    configuration: str = "Development"
    with_editor: bool = True
    ubt_extra_flags: str = ""
    platform_name: str = "Linux"

    @property
    def target_name_suffix(self) -> str:
        return "Editor" if self.with_editor else ""

    @property
    def full_target_name(self) -> str:
        """Name UnrealBuildTool expects, e.g. ``MyGameEditor``."""
        return self.target_name + self.target_name_suffix

    @property
    def label(self) -> str:
        label = self.configuration
        if self.with_editor:
            label += "-Editor"
        return label

    @classmethod
    def from_dict(cls, data: dict) -> "BuildTarget":
        if not data.get("TargetName"):
            raise ConfigError("Target entry is missing TargetName")
        return cls(
            target_name=data["TargetName"],
            configuration=data.get("Configuration", "Development"),
            with_editor=bool(data.get("withEditor", True)),
            ubt_extra_flags=data.get("UbtExtraFlags", "") or "",
            platform_name=data.get("PlatformName", "Linux"),
        )

    def to_dict(self) -> dict:
        return {
            "TargetName": self.target_name,
            "Configuration": self.configuration,
            "withEditor": self.with_editor,
            "UbtExtraFlags": self.ubt_extra_flags,
            "PlatformName": self.platform_name,
        }


@dataclass
class ProjectConfig:
    engine_dir: str
    engine_ver: float = 5.0
    default_target: int = 1
    targets: list[BuildTarget] = field(default_factory=list)
    version: str = CONFIG_VERSION
    comment: str = ""

    def get_target(self, index: Optional[int] = None) -> BuildTarget:
        """Resolve a 1-based target index, defaulting to ``default_target``."""
        if index is None:
            index = self.default_target or 1
        if not 1 <= index <= len(self.targets):
            raise ConfigError(
                f"Invalid target index: {index} (config has {len(self.targets)} targets)"
            )
        return self.targets[index - 1]

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectConfig":
        version = data.get("version")
        if version != CONFIG_VERSION:
            raise ConfigError(
                f"Config format {version!r} is incompatible with {CONFIG_VERSION!r}. "
                "Back up the file, delete it and create a new one with 'unreal-codegen init'"
            )

        targets = data.get("Targets")
        if not isinstance(targets, list) or not targets:
            raise ConfigError("Config has no Targets")

        try:
            engine_ver = float(data.get("EngineVer", 5.0))
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid EngineVer: {data.get('EngineVer')!r}")

        return cls(
            engine_dir=normalize_path(data.get("EngineDir") or ""),
            engine_ver=engine_ver,
            default_target=int(data.get("DefaultTarget") or 1),
            targets=[BuildTarget.from_dict(t) for t in targets],
            version=version,
            comment=data.get("_comment", ""),
        )

    def to_dict(self) -> dict:
        data = {"version": self.version}
        if self.comment:
            data["_comment"] = self.comment
        data.update(
            {
                "EngineDir": self.engine_dir,
                "EngineVer": self.engine_ver,
                "DefaultTarget": self.default_target,
                "Targets": [t.to_dict() for t in self.targets],
            }
        )
        return data


def config_path(project_dir) -> Path:
    return Path(project_dir) / CONFIG_FILE_NAME


def load_config(project_dir) -> ProjectConfig:
    """Load and validate ``UnrealNvim.json`` from ``project_dir``."""
    path = config_path(project_dir)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot open config file: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a JSON object: {path}")

    config = ProjectConfig.from_dict(data)
    logger.debug("Loaded config %s (engine %s)", path, config.engine_dir)
    return config


def default_config(
    project_name: str, engine_dir: str, engine_ver: float, platform_name: str
) -> ProjectConfig:
    """Config with one editor target per default build configuration."""
    return ProjectConfig(
        engine_dir=normalize_path(engine_dir),
        engine_ver=engine_ver,
        default_target=1,
        targets=[
            BuildTarget(
                target_name=project_name,
                configuration=configuration,
                with_editor=True,
                platform_name=platform_name,
            )
            for configuration in DEFAULT_CONFIGURATIONS
        ],
        comment="Generated by unreal-codegen init",
    )


def write_config(project_dir, config: ProjectConfig, overwrite: bool = False) -> Path:
    path = config_path(project_dir)
    if path.exists() and not overwrite:
        raise FileExistsError(f"Config already exists: {path}")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=4)
        f.write("\n")
    return path
