"""Rewrite a UnrealBuildTool compile database for clang-based language servers.

The database is treated as line-oriented text: only lines carrying a
``"file":`` or ``"command":`` key are inspected, everything else is copied
byte for byte. Each ``"command"`` line is rewritten to point at a response
file this module writes next to (or instead of) the one UnrealBuildTool
produced.

Usage:
    from unreal_codegen.compile_db import process_compile_commands

    result = process_compile_commands(
        "/Engine/compile_commands.json",
        "/Project/Intermediate/clangRsp/Linux/Development",
        engine_dir="/Engine",
        skip_engine=True,
    )
    print(result.files_processed, result.errors)
"""

import enum
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..pathutil import (
    Dialect,
    compiler_token,
    current_dialect,
    escape_path,
    is_under_root,
    normalize_path,
)
from .command_line import rewrite_arguments
from .response_file import ResponseFileNotFound, translate_response_file

logger = logging.getLogger("unreal-codegen")

FILE_KEY = '"file":'
COMMAND_KEY = '"command":'
RSP_REFERENCE = '@\\"'
ESCAPED_QUOTE = '\\"'


class CompileDatabaseError(OSError):
    """The pass could not start: unreadable input or unusable output directory."""


class ScanPhase(enum.Enum):
    SCANNING_FOR_FILE = "scanning_for_file"
    SCANNING_FOR_COMMAND = "scanning_for_command"


@dataclass
class ScanState:
    """Scanner position, threaded through the line loop.

    ``current_file`` is the raw (still JSON-escaped) value of the most recent
    ``"file":`` line and identifies the entry a ``"command":`` line belongs to.
    """

    phase: ScanPhase = ScanPhase.SCANNING_FOR_FILE
    current_file: str = ""


@dataclass
class ResponseFileJob:
    """A response file to produce for one database entry."""

    path: str
    source_file: str
    render: Callable[[], str]


@dataclass
class ProcessingResult:
    text: str
    files_processed: int = 0
    errors: list[str] = field(default_factory=list)
    entries: int = 0


@dataclass
class _ProcessOptions:
    output_dir: str
    engine_dir: str
    skip_engine: bool
    dialect: Dialect
    verbose: bool = False


def read_json_string(line: str, start: int) -> Optional[str]:
    """Read the JSON string literal that begins at or after ``start``.

    Returns the raw text between the quotes, escapes left in place, or None
    when no complete string literal follows.
    """
    pos = start
    while pos < len(line) and line[pos] in " \t":
        pos += 1
    if pos >= len(line) or line[pos] != '"':
        return None

    pos += 1
    begin = pos
    while pos < len(line):
        char = line[pos]
        if char == "\\":
            pos += 2
            continue
        if char == '"':
            return line[begin:pos]
        pos += 1
    return None


def extract_file_value(line: str) -> Optional[str]:
    """Value of a ``"file":`` line, or None if the line carries no such key."""
    key_pos = line.find(FILE_KEY)
    if key_pos == -1:
        return None
    return read_json_string(line, key_pos + len(FILE_KEY))


def response_file_output_path(rsp_path: str, dialect: Dialect) -> str:
    """Name for the rewritten copy of an existing response file.

    The build tool's own file is never overwritten.
    """
    if dialect is Dialect.MSVC:
        return rsp_path + ".cl.rsp"
    if rsp_path.endswith(".rsp"):
        return rsp_path + ".clang.rsp"
    return rsp_path + ".rsp"


def synthesized_rsp_name(source_file: str) -> str:
    """Flatten a source file path into a response file name.

    ``C:\\\\Game\\\\Source\\\\Foo.cpp`` becomes ``C_Game_Source_Foo.cpp.rsp``.
    """
    name = source_file.replace("\\\\", "/")
    for char in (":", '"', ","):
        name = name.replace(char, "")
    name = name.replace("\\", "/")
    return name.replace("/", "_") + ".rsp"


def _split_line_ending(raw_line: str) -> tuple[str, str]:
    content = raw_line.rstrip("\r\n")
    return content, raw_line[len(content) :]


def _rewrite_command_line(
    line: str, state: ScanState, options: _ProcessOptions
) -> tuple[str, Optional[ResponseFileJob]]:
    """Rewrite one ``"command":`` line.

    Returns the new line (without line ending) and the response file to
    write, if any. Lines whose compiler cannot be located come back as-is.
    """
    current_file = state.current_file
    is_engine_file = is_under_root(current_file, options.engine_dir)
    should_skip = is_engine_file and options.skip_engine

    if options.verbose and not should_skip:
        logger.info("Processing: %s", current_file)

    key_pos = line.find(COMMAND_KEY)
    value_start = key_pos + len(COMMAND_KEY)
    token = compiler_token(options.dialect)
    token_pos = line.find(token, value_start)
    if token_pos == -1:
        logger.debug("No compiler found, passing through: %s", current_file)
        return line, None

    compiler_end = token_pos + len(token)
    indent = line[:key_pos]
    compiler = line[value_start:compiler_end].strip()
    prefix = f"{indent}{COMMAND_KEY} {compiler}"

    ref_pos = line.find(RSP_REFERENCE, compiler_end)
    if ref_pos != -1:
        path_start = ref_pos + len(RSP_REFERENCE)
        path_end = line.find(ESCAPED_QUOTE, path_start)
        if path_end == -1:
            logger.debug("Unterminated response file reference: %s", current_file)
            return line, None

        rsp_path = normalize_path(line[path_start:path_end])
        new_rsp_path = response_file_output_path(rsp_path, options.dialect)
        new_line = f'{prefix} @\\"{escape_path(new_rsp_path)}\\"",'

        job = None
        if not should_skip:
            engine_dir, dialect = options.engine_dir, options.dialect
            job = ResponseFileJob(
                path=new_rsp_path,
                source_file=current_file,
                render=lambda: translate_response_file(rsp_path, engine_dir, dialect),
            )
        return new_line, job

    tail = line[compiler_end:]
    rsp_path = f"{options.output_dir}/{synthesized_rsp_name(current_file)}"
    new_line = (
        f'{prefix} @\\"{escape_path(rsp_path)}\\" {escape_path(current_file)}",'
    )

    job = None
    if not should_skip:
        job = ResponseFileJob(
            path=rsp_path,
            source_file=current_file,
            render=lambda: rewrite_arguments(tail),
        )
    return new_line, job


def process_line(
    raw_line: str, state: ScanState, options: _ProcessOptions
) -> tuple[str, Optional[ResponseFileJob]]:
    """Advance the scanner over one input line.

    Returns the output line (with its original line ending) and an optional
    response file job. ``state`` is updated in place.
    """
    line, ending = _split_line_ending(raw_line)

    if COMMAND_KEY in line:
        if state.phase is not ScanPhase.SCANNING_FOR_COMMAND:
            # No "file" line since the last command: nothing to name it after.
            logger.debug("Command without a preceding file entry, passing through")
            return raw_line, None
        new_line, job = _rewrite_command_line(line, state, options)
        state.phase = ScanPhase.SCANNING_FOR_FILE
        return new_line + ending, job

    file_value = extract_file_value(line)
    if file_value is not None:
        state.current_file = file_value
        state.phase = ScanPhase.SCANNING_FOR_COMMAND
    return raw_line, None


def write_response_file(job: ResponseFileJob) -> Optional[str]:
    """Render and write one response file; return an error message on failure."""
    try:
        content = job.render()
    except ResponseFileNotFound as e:
        return f"RSP extract failed for {job.source_file}: {e}"

    # Bytes the database could not decode come back out unchanged.
    try:
        data = content.encode("utf-8", errors="surrogateescape")
    except UnicodeError as e:
        return f"Cannot write RSP: {job.path} ({e})"

    try:
        with open(job.path, "wb") as f:
            f.write(data)
    except OSError as e:
        return f"Cannot write RSP: {job.path} ({e})"
    return None


def _run_jobs(jobs: list[ResponseFileJob], workers: int) -> list[Optional[str]]:
    if workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(write_response_file, jobs))
    return [write_response_file(job) for job in jobs]


def ensure_dir(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise CompileDatabaseError(f"Cannot create output directory {path}: {e}") from e


def process_compile_commands(
    input_json,
    output_dir,
    engine_dir: str,
    skip_engine: bool,
    verbose: bool = False,
    dialect: Optional[Dialect] = None,
    jobs: int = 1,
) -> ProcessingResult:
    """Rewrite ``input_json`` and write the response files it needs.

    Args:
        input_json: compile_commands.json produced by UnrealBuildTool.
        output_dir: Directory for synthesized response files (created).
        engine_dir: Engine root; entries under it count as engine files.
        skip_engine: Do not write response files for engine entries. Their
            command lines are still rewritten.
        verbose: Log every processed entry at INFO level.
        dialect: Response file dialect. Defaults to the host platform's.
        jobs: Worker threads for response file writes.

    Returns:
        ProcessingResult with the rewritten database text, the number of
        response files written and one message per failed entry.

    Raises:
        ValueError: ``engine_dir`` is empty.
        CompileDatabaseError: the input cannot be read or the output
            directory cannot be created. Nothing is written in that case.
    """
    if not engine_dir or not str(engine_dir).strip():
        raise ValueError("Engine directory not specified")
    if dialect is None:
        dialect = current_dialect()

    output_dir = normalize_path(str(output_dir)).rstrip("/") or "/"
    engine_dir = normalize_path(str(engine_dir)).rstrip("/") or "/"

    try:
        with open(
            input_json, "r", encoding="utf-8", errors="surrogateescape", newline=""
        ) as f:
            raw_lines = f.readlines()
    except OSError as e:
        raise CompileDatabaseError(
            f"Cannot open compile_commands.json: {input_json} ({e})"
        ) from e

    ensure_dir(output_dir)

    options = _ProcessOptions(
        output_dir=output_dir,
        engine_dir=engine_dir,
        skip_engine=skip_engine,
        dialect=dialect,
        verbose=verbose,
    )
    state = ScanState()
    out_lines: list[str] = []
    pending: list[ResponseFileJob] = []
    entries = 0

    for raw_line in raw_lines:
        if COMMAND_KEY in raw_line:
            entries += 1
        new_line, job = process_line(raw_line, state, options)
        out_lines.append(new_line)
        if job is not None:
            pending.append(job)

    result = ProcessingResult(text="".join(out_lines), entries=entries)
    for error in _run_jobs(pending, jobs):
        if error is None:
            result.files_processed += 1
        else:
            logger.warning(error)
            result.errors.append(error)

    logger.debug(
        "Processed %d entries: %d response files, %d errors",
        entries,
        result.files_processed,
        len(result.errors),
    )
    return result


def write_database(path, text: str) -> None:
    """Write rewritten database text without altering its line endings."""
    with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
        f.write(text)
