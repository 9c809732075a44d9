"""Project-level operations: init, generate, build and run.

Every function returns a JSON-serialisable result dict with at least
``success`` and ``message``; failures a user can fix (missing project,
bad config, tool errors) are reported there rather than raised. The CLI
and the MCP server are thin wrappers around these functions.
"""

import logging
import platform
from pathlib import Path
from typing import Optional

from unreal_codegen.compile_db import (
    CompileDatabaseError,
    process_compile_commands,
    write_database,
)
from unreal_codegen.core import (
    ConfigError,
    ToolError,
    build_command,
    build_script_path,
    clang_database_command,
    config_path,
    default_config,
    format_command,
    headers_command,
    load_config,
    run_command,
    run_tool,
    ubt_path,
    write_config,
)
from unreal_codegen.engine_detect import (
    DEFAULT_ENGINE_VERSION,
    detect_engine,
    find_uproject,
    read_engine_version,
)
from unreal_codegen.pathutil import (
    Dialect,
    current_dialect,
    normalize_path,
    platform_name,
)
from unreal_codegen.tasks import GenerationSequencer, GenerationStage, ProcessExit

logger = logging.getLogger("unreal-codegen")

DATABASE_FILE_NAME = "compile_commands.json"


def _failure(message: str, **extra) -> dict:
    result = {"success": False, "message": message}
    result.update(extra)
    return result


def resolve_project(project) -> tuple[Path, Path, str]:
    """Resolve a project argument to (uproject, project_dir, project_name).

    Raises:
        ValueError: no .uproject could be found.
    """
    if not project:
        raise ValueError("Project path is required")

    uproject = find_uproject(project)
    if uproject is None:
        raise ValueError(f"Could not find .uproject file in: {project}")
    return uproject, uproject.parent, uproject.stem


def rsp_output_dir(project_dir, target) -> Path:
    return (
        Path(project_dir)
        / "Intermediate"
        / "clangRsp"
        / target.platform_name
        / target.configuration
    )


def init_project(project, engine: Optional[str] = None, force: bool = False) -> dict:
    """Create ``UnrealNvim.json`` for a project, detecting the engine if needed."""
    try:
        uproject, project_dir, project_name = resolve_project(project)
    except ValueError as e:
        return _failure(str(e))

    path = config_path(project_dir)
    if path.exists() and not force:
        return _failure(f"Config already exists: {path}", warning=True)

    auto_detected = False
    if engine:
        engine_dir = normalize_path(str(engine))
        engine_ver = read_engine_version(engine_dir)
    else:
        install = detect_engine(uproject)
        if install is None:
            return _failure(
                "Could not auto-detect the engine from the .uproject; "
                "pass --engine with the engine root"
            )
        engine_dir, engine_ver = install.root, install.version
        auto_detected = True

    plat = platform_name()
    config = default_config(project_name, engine_dir, engine_ver, plat)
    try:
        write_config(project_dir, config, overwrite=force)
    except OSError as e:
        return _failure(f"Cannot write config file: {path} ({e})")
    logger.info("Wrote %s", path)

    return {
        "success": True,
        "message": "Config created successfully",
        "config_path": str(path),
        "project": project_name,
        "platform": plat,
        "auto_detected": auto_detected,
        "detected_engine": engine_dir if auto_detected else None,
        "detected_version": engine_ver if auto_detected else None,
    }


def _load_project(project, engine: Optional[str], target_index: Optional[int]):
    uproject, project_dir, project_name = resolve_project(project)
    config = load_config(project_dir)
    engine_dir = normalize_path(str(engine)) if engine else config.engine_dir
    if not engine_dir:
        raise ConfigError("Engine directory not specified")
    target = config.get_target(target_index)
    return uproject, project_dir, project_name, config, engine_dir, target


def process_database(
    input_json,
    output_dir,
    engine_dir: str,
    output_file=None,
    with_engine: bool = False,
    dialect: Optional[Dialect] = None,
    jobs: int = 1,
    verbose: bool = False,
) -> dict:
    """Rewrite a compile database and write the result to ``output_file``.

    ``output_file`` defaults to ``compile_commands.json`` in ``output_dir``.
    """
    if output_file is None:
        output_file = Path(output_dir) / DATABASE_FILE_NAME

    try:
        processed = process_compile_commands(
            input_json,
            output_dir,
            engine_dir,
            skip_engine=not with_engine,
            verbose=verbose,
            dialect=dialect,
            jobs=jobs,
        )
    except (CompileDatabaseError, ValueError) as e:
        return _failure(str(e))

    try:
        write_database(output_file, processed.text)
    except OSError as e:
        return _failure(f"Cannot write output: {output_file} ({e})")

    return {
        "success": True,
        "message": "Generation completed successfully",
        "files_processed": processed.files_processed,
        "errors": processed.errors,
        "entries": processed.entries,
        "output_file": str(output_file),
    }


def generate_commands(
    project,
    engine: Optional[str] = None,
    target: Optional[int] = None,
    with_engine: bool = False,
    headers: bool = False,
    skip_ubt: bool = False,
    jobs: int = 1,
    verbose: bool = False,
    timeout: Optional[float] = None,
) -> dict:
    """Generate a clang-compatible compile_commands.json for a project.

    Runs UnrealBuildTool in GenerateClangDatabase mode (unless ``skip_ubt``),
    rewrites ``<engine>/compile_commands.json`` into the project directory
    and, with ``headers``, runs UnrealHeaderTool afterwards.
    """
    try:
        uproject, project_dir, project_name, config, engine_dir, build_target = (
            _load_project(project, engine, target)
        )
    except (ValueError, ConfigError) as e:
        return _failure(str(e))

    logger.info("Project: %s", project_name)
    logger.info("Engine: %s", engine_dir)
    logger.info("Target: %s (%s)", build_target.full_target_name, build_target.label)

    ubt = ubt_path(engine_dir, config.engine_ver or DEFAULT_ENGINE_VERSION)
    input_json = Path(engine_dir) / DATABASE_FILE_NAME
    output_json = Path(project_dir) / DATABASE_FILE_NAME
    output_dir = rsp_output_dir(project_dir, build_target)

    sequencer = GenerationSequencer(
        include_database=not skip_ubt, include_headers=headers
    )
    result = _failure("Generation did not run")

    try:
        stage = sequencer.start()
        while stage is not None:
            if stage is GenerationStage.DATABASE:
                argv = clang_database_command(ubt, str(uproject), build_target)
                logger.info("Running UnrealBuildTool: %s", format_command(argv))
                returncode = run_tool(argv, cwd=engine_dir, timeout=timeout).returncode
                if returncode != 0:
                    result = _failure(
                        f"UnrealBuildTool execution failed (exit code {returncode})"
                    )
            elif stage is GenerationStage.PROCESS:
                logger.info("Processing %s", input_json)
                result = process_database(
                    input_json,
                    output_dir,
                    engine_dir,
                    output_file=output_json,
                    with_engine=with_engine,
                    dialect=current_dialect(),
                    jobs=jobs,
                    verbose=verbose,
                )
                returncode = 0 if result["success"] else 1
            else:
                argv = headers_command(ubt, str(uproject), build_target)
                logger.info("Generating headers: %s", format_command(argv))
                returncode = run_tool(argv, cwd=engine_dir, timeout=timeout).returncode
                if returncode != 0:
                    result = dict(
                        result,
                        success=False,
                        message=f"UnrealHeaderTool failed (exit code {returncode})",
                    )
            stage = sequencer.notify(ProcessExit(stage, returncode))
    except ToolError as e:
        return _failure(str(e), status=sequencer.status())

    result["status"] = sequencer.status()
    result["target"] = build_target.label
    return result


def build_project(
    project, target: Optional[int] = None, dry_run: bool = False, timeout=None
) -> dict:
    """Build the project target with the engine's Build script."""
    try:
        uproject, project_dir, project_name, config, engine_dir, build_target = (
            _load_project(project, None, target)
        )
    except (ValueError, ConfigError) as e:
        return _failure(str(e))

    argv = build_command(build_script_path(engine_dir), str(uproject), build_target)
    return _dispatch(argv, "Build", dry_run, cwd=project_dir, timeout=timeout)


def run_project(
    project, target: Optional[int] = None, dry_run: bool = False, timeout=None
) -> dict:
    """Launch the editor (or game binary) for the project target."""
    try:
        uproject, project_dir, project_name, config, engine_dir, build_target = (
            _load_project(project, None, target)
        )
    except (ValueError, ConfigError) as e:
        return _failure(str(e))

    argv = run_command(
        engine_dir,
        normalize_path(str(project_dir)),
        project_name,
        str(uproject),
        build_target,
        system=platform.system(),
    )
    return _dispatch(argv, "Run", dry_run, cwd=project_dir, timeout=timeout)


def _dispatch(argv: list[str], label: str, dry_run: bool, cwd=None, timeout=None) -> dict:
    command = format_command(argv)
    if dry_run:
        return {
            "success": True,
            "message": f"{label} command constructed",
            "command": command,
            "argv": argv,
        }

    try:
        completed = run_tool(argv, cwd=cwd, timeout=timeout)
    except ToolError as e:
        return _failure(str(e), command=command)

    if completed.returncode != 0:
        return _failure(
            f"{label} failed (exit code {completed.returncode})",
            command=command,
            returncode=completed.returncode,
        )
    return {
        "success": True,
        "message": f"{label} completed successfully",
        "command": command,
        "returncode": 0,
    }
