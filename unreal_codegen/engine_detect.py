"""Unreal Engine install detection for a project.

Handles both version-string and GUID EngineAssociation values, with registry
lookups on Windows, and reads the engine version from the install itself.
"""

import json
import logging
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .pathutil import normalize_path

logger = logging.getLogger("unreal-codegen")

DEFAULT_ENGINE_VERSION = 5.0

_VERSION_IN_PATH = re.compile(r"UE[_\-]?(\d+)\.(\d+)")


@dataclass
class EngineInstall:
    root: str
    version: float


def find_uproject(start) -> Optional[Path]:
    """Find the .uproject in ``start`` or the nearest parent directory.

    ``start`` may be a directory, a source file inside the project or the
    .uproject itself.
    """
    start = Path(start).expanduser()
    if start.suffix == ".uproject" and start.is_file():
        return start.resolve()

    directory = start if start.is_dir() else start.parent
    directory = directory.resolve()
    for candidate_dir in (directory, *directory.parents):
        try:
            matches = sorted(candidate_dir.glob("*.uproject"))
        except OSError:
            continue
        if matches:
            return matches[0]
    return None


def detect_engine(uproject_path) -> Optional[EngineInstall]:
    """Detect the engine a .uproject is associated with.

    Reads EngineAssociation from the project file and searches
    platform-specific install locations. On Windows, also checks the
    registry for GUID-based source build associations and launcher installs.

    Args:
        uproject_path: Path to the .uproject file.

    Returns:
        EngineInstall for the engine root (the directory holding ``Engine/``),
        or None if nothing was found.
    """
    uproject_path = Path(uproject_path)

    try:
        with open(uproject_path, "r", encoding="utf-8") as f:
            proj = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Cannot read %s: %s", uproject_path, e)
        return None

    engine_assoc = proj.get("EngineAssociation", "") if isinstance(proj, dict) else ""
    if not engine_assoc:
        return None

    system = platform.system()
    is_guid = _looks_like_guid(engine_assoc)

    root = None
    if system == "Windows":
        if is_guid:
            root = _check_windows_registry_guid(engine_assoc)
        else:
            root = _check_windows_registry_version(engine_assoc)

    if root is None:
        for candidate in _get_candidate_roots(engine_assoc, system, is_guid):
            if (candidate / "Engine").is_dir():
                root = str(candidate)
                break

    if root is None:
        return None

    root = normalize_path(root)
    return EngineInstall(root=root, version=read_engine_version(root))


def read_engine_version(engine_root) -> float:
    """Engine version as ``major.minor``.

    Prefers ``Engine/Build/Build.version``; falls back to a ``UE_5.3`` style
    directory name, then to 5.0.
    """
    build_version = Path(engine_root) / "Engine" / "Build" / "Build.version"
    try:
        with open(build_version, "r", encoding="utf-8") as f:
            data = json.load(f)
        return float(f"{int(data['MajorVersion'])}.{int(data['MinorVersion'])}")
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
        pass

    return version_from_path(str(engine_root)) or DEFAULT_ENGINE_VERSION


def version_from_path(path: str) -> Optional[float]:
    match = _VERSION_IN_PATH.search(path)
    if not match:
        return None
    return float(f"{match.group(1)}.{match.group(2)}")


def _looks_like_guid(value: str) -> bool:
    """Check if a string looks like a GUID (e.g., {XXXXXXXX-XXXX-...})."""
    stripped = value.strip("{}")
    parts = stripped.split("-")
    if len(parts) != 5:
        return False
    try:
        int(stripped.replace("-", ""), 16)
        return True
    except ValueError:
        return False


def _get_candidate_roots(engine_assoc: str, system: str, is_guid: bool) -> list[Path]:
    """Build a list of candidate engine roots for the given platform.

    GUID associations only resolve through the registry.
    """
    if is_guid:
        return []

    if system == "Windows":
        return [
            # Epic Games Launcher installs
            Path(rf"C:\Program Files\Epic Games\UE_{engine_assoc}"),
            Path(rf"D:\Program Files\Epic Games\UE_{engine_assoc}"),
            Path(rf"E:\Program Files\Epic Games\UE_{engine_assoc}"),
            # Source builds
            Path(rf"D:\UnrealDev\UE_{engine_assoc}"),
            Path(rf"C:\UnrealEngine\UE_{engine_assoc}"),
        ]

    home = Path.home()
    if system == "Darwin":
        return [
            Path(f"/Users/Shared/Epic Games/UE_{engine_assoc}"),
            home / f"UnrealEngine/UE_{engine_assoc}",
            home / f"dev/UnrealEngine/UE_{engine_assoc}",
        ]

    return [
        home / f"UnrealEngine/UE_{engine_assoc}",
        home / f"dev/UnrealEngine/UE_{engine_assoc}",
        Path(f"/opt/unreal-engine/UE_{engine_assoc}"),
        Path(f"/opt/UnrealEngine/UE_{engine_assoc}"),
    ]


def _check_windows_registry_guid(guid: str) -> Optional[str]:
    """Look up a GUID-based engine association in the Windows registry.

    Source builds register under:
        HKCU\\Software\\Epic Games\\Unreal Engine\\Builds\\{GUID} = <engine_root>
    """
    try:
        import winreg

        key = winreg.OpenKey(
            winreg.HKEY_CURRENT_USER,
            r"Software\Epic Games\Unreal Engine\Builds",
        )
        try:
            engine_root, _ = winreg.QueryValueEx(key, guid)
            if (Path(engine_root) / "Engine").is_dir():
                return engine_root
        finally:
            winreg.CloseKey(key)
    except (ImportError, OSError):
        pass
    return None


def _check_windows_registry_version(version: str) -> Optional[str]:
    """Look up a version-based engine install in the Windows registry.

    Launcher installs register under:
        HKLM\\SOFTWARE\\EpicGames\\Unreal Engine\\{version}\\InstalledDirectory
    """
    try:
        import winreg

        key = winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE,
            rf"SOFTWARE\EpicGames\Unreal Engine\{version}",
        )
        try:
            install_dir, _ = winreg.QueryValueEx(key, "InstalledDirectory")
            if (Path(install_dir) / "Engine").is_dir():
                return install_dir
        finally:
            winreg.CloseKey(key)
    except (ImportError, OSError):
        pass
    return None
