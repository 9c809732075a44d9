"""Translate UnrealBuildTool response files for clang-based tooling.

UnrealBuildTool writes MSVC-style response files (``/I``, ``/D``, ``/FI``)
even when the database is generated for a clang toolchain. On macOS and
Linux the flags are rewritten to their clang spelling; on Windows the file
is kept as-is. Either way a fixed set of engine headers is force-included so
the language server sees the UObject macros without a full UHT pass.
"""

from ..pathutil import Dialect, file_exists

# Force-included after the translated flags, in this order.
MANDATORY_HEADERS = (
    "Engine/Source/Runtime/CoreUObject/Public/UObject/ObjectMacros.h",
    "Engine/Source/Runtime/Core/Public/Misc/EnumRange.h",
    "Engine/Source/Runtime/Engine/Public/EngineMinimal.h",
)

# (msvc prefix, clang replacement), applied in order at line start only.
_FLAG_PREFIXES = (
    ("/FI", "-include "),
    ("/I ", "-I "),
    ("/D", "-D"),
    ("/W", "-W"),
)


class ResponseFileNotFound(FileNotFoundError):
    """The response file referenced by a compile command does not exist."""


def translate_line(line: str, dialect: Dialect) -> str:
    """Rewrite a single response file line into ``dialect``."""
    if dialect is Dialect.MSVC:
        return line
    for prefix, replacement in _FLAG_PREFIXES:
        if line.startswith(prefix):
            line = replacement + line[len(prefix) :]
    return line


def header_include_line(engine_dir: str, header: str, dialect: Dialect) -> str:
    include_path = f"{engine_dir}/{header}"
    if dialect is Dialect.MSVC:
        return f'/FI"{include_path}"'
    return f'-include "{include_path}"'


def translate_lines(lines, engine_dir: str, dialect: Dialect) -> list[str]:
    """Translate response file lines and append the mandatory includes."""
    translated = [translate_line(line, dialect) for line in lines]
    translated.extend(
        header_include_line(engine_dir, header, dialect)
        for header in MANDATORY_HEADERS
    )
    return translated


def translate_response_file(rsp_path, engine_dir: str, dialect: Dialect) -> str:
    """Read ``rsp_path`` and return the translated response file text.

    Raises:
        ResponseFileNotFound: the file does not exist or cannot be read.
    """
    if not file_exists(rsp_path):
        raise ResponseFileNotFound(f"RSP file doesn't exist: {rsp_path}")

    try:
        with open(rsp_path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise ResponseFileNotFound(f"Cannot read RSP file {rsp_path}: {e}") from e

    return "\n".join(translate_lines(lines, engine_dir, dialect)) + "\n"
