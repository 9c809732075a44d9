"""Engine tool locations and the command lines used to drive them."""

import logging
import platform
import shlex
import subprocess
from pathlib import Path
from typing import Optional

from .config import BuildTarget

logger = logging.getLogger("unreal-codegen")


class ToolError(RuntimeError):
    """An engine tool could not be started or did not finish in time."""


def _system(system: Optional[str]) -> str:
    return system if system is not None else platform.system()


def ubt_path(engine_dir: str, engine_ver: Optional[float], system: str = None) -> str:
    """Path to UnrealBuildTool; UE4 keeps it one directory higher."""
    system = _system(system)
    ubt_name = "UnrealBuildTool.exe" if system == "Windows" else "UnrealBuildTool"
    if engine_ver is not None and engine_ver < 5.0:
        return f"{engine_dir}/Engine/Binaries/DotNET/{ubt_name}"
    return f"{engine_dir}/Engine/Binaries/DotNET/UnrealBuildTool/{ubt_name}"


def build_script_path(engine_dir: str, system: str = None) -> str:
    system = _system(system)
    if system == "Windows":
        return f"{engine_dir}/Engine/Build/BatchFiles/Build.bat"
    elif system == "Darwin":
        return f"{engine_dir}/Engine/Build/BatchFiles/Mac/Build.sh"
    return f"{engine_dir}/Engine/Build/BatchFiles/Linux/Build.sh"


def binary_suffix(target: BuildTarget) -> str:
    """Binary name suffix for a target, e.g. ``-Win64-DebugGame``.

    Development binaries carry no suffix.
    """
    if target.configuration == "Development":
        return ""
    return f"-{target.platform_name}-{target.configuration}"


def editor_path(
    engine_dir: str,
    project_dir: Optional[str],
    project_name: Optional[str],
    suffix: str,
    system: str = None,
) -> str:
    """Executable to launch: the project binary if given, else UnrealEditor."""
    system = _system(system)
    if system == "Windows":
        if project_dir and project_name:
            return f"{project_dir}/Binaries/Win64/{project_name}{suffix}.exe"
        return f"{engine_dir}/Engine/Binaries/Win64/UnrealEditor{suffix}.exe"
    elif system == "Darwin":
        if project_dir and project_name:
            name = f"{project_name}{suffix}"
            return f"{project_dir}/Binaries/Mac/{name}.app/Contents/MacOS/{name}"
        name = f"UnrealEditor{suffix}"
        return f"{engine_dir}/Engine/Binaries/Mac/{name}.app/Contents/MacOS/{name}"
    if project_dir and project_name:
        return f"{project_dir}/Binaries/Linux/{project_name}{suffix}"
    return f"{engine_dir}/Engine/Binaries/Linux/UnrealEditor{suffix}"


def _target_args(target: BuildTarget) -> list[str]:
    return [target.full_target_name, target.configuration, target.platform_name]


def _extra_flags(target: BuildTarget) -> list[str]:
    return shlex.split(target.ubt_extra_flags) if target.ubt_extra_flags else []


def clang_database_command(ubt: str, uproject: str, target: BuildTarget) -> list[str]:
    """UnrealBuildTool invocation that writes ``<engine>/compile_commands.json``."""
    return [
        ubt,
        "-mode=GenerateClangDatabase",
        f"-project={uproject}",
        "-game",
        "-engine",
        *_extra_flags(target),
        *_target_args(target),
    ]


def headers_command(ubt: str, uproject: str, target: BuildTarget) -> list[str]:
    """UnrealBuildTool invocation that only runs UnrealHeaderTool."""
    return [
        ubt,
        f"-project={uproject}",
        *_extra_flags(target),
        *_target_args(target),
        "-headers",
    ]


def build_command(build_script: str, uproject: str, target: BuildTarget) -> list[str]:
    return [
        build_script,
        *_target_args(target),
        f"-project={uproject}",
        "-waitmutex",
        *_extra_flags(target),
    ]


def run_command(
    engine_dir: str,
    project_dir: str,
    project_name: str,
    uproject: str,
    target: BuildTarget,
    system: str = None,
) -> list[str]:
    """Launch the editor with the project, or the packaged game binary."""
    suffix = binary_suffix(target)
    if target.with_editor:
        return [editor_path(engine_dir, None, None, suffix, system), uproject]
    return [editor_path(engine_dir, project_dir, project_name, suffix, system)]


def format_command(argv: list[str]) -> str:
    """Render argv for display, quoting arguments that need it."""
    return " ".join(f'"{arg}"' if (" " in arg and '"' not in arg) else arg for arg in argv)


def run_tool(
    argv: list[str], cwd=None, timeout: Optional[float] = None
) -> subprocess.CompletedProcess:
    """Run an engine tool and wait for it to exit.

    Raises:
        ToolError: the executable is missing or the timeout expired. A
            non-zero exit is not an error here; callers inspect returncode.
    """
    logger.debug("Running: %s", format_command(argv))
    try:
        result = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ToolError(f"Tool not found: {argv[0]} ({e})") from e
    except subprocess.TimeoutExpired as e:
        raise ToolError(f"{Path(argv[0]).name} timed out after {timeout}s") from e
    except OSError as e:
        raise ToolError(f"Failed to run {argv[0]}: {e}") from e

    if result.returncode != 0:
        logger.warning(
            "%s exited with %d: %s",
            Path(argv[0]).name,
            result.returncode,
            (result.stderr or result.stdout or "")[-500:],
        )
    return result
