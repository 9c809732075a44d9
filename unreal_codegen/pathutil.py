"""Path utilities for cross-platform compile database handling.

Compile databases produced by UnrealBuildTool mix Windows and POSIX
separators, and every path inside a ``"command"`` string is JSON-escaped.
All comparisons in this package go through :func:`normalize_path` first.
"""

import enum
import os
import platform
import re

_SEPARATOR_RUN = re.compile(r"/{2,}")


class Dialect(enum.Enum):
    """Compiler flag convention used by the response files."""

    MSVC = "msvc"
    CLANG = "clang"


def normalize_path(path: str | None) -> str | None:
    """Convert separators to forward slashes and collapse repeats.

    Idempotent: ``normalize_path(normalize_path(p)) == normalize_path(p)``.
    JSON-escaped backslash pairs (``C:\\\\Foo``) normalize the same way as
    single backslashes.
    """
    if path is None:
        return None
    return _SEPARATOR_RUN.sub("/", path.replace("\\", "/"))


def is_under_root(path: str, root: str) -> bool:
    """Return True when the normalized root occurs anywhere in the normalized path.

    This is a substring test, not a path-segment test, so any path that
    merely contains the root text is classified as under it (for example
    ``D:/Backup/C:/Engine/Foo.cpp`` for root ``C:/Engine``).
    """
    return normalize_path(root) in normalize_path(path)


def file_exists(path) -> bool:
    """Existence probe that never raises."""
    try:
        return os.path.isfile(path)
    except (OSError, TypeError, ValueError):
        return False


def escape_path(path: str) -> str:
    """Escape a path for embedding inside a JSON command string."""
    path = path.replace("\\\\", "/")
    path = path.replace("\\", "/")
    return path.replace('"', '\\"')


def dialect_for_platform(system: str) -> Dialect:
    """Map a ``platform.system()`` value to the response file dialect."""
    if system == "Windows":
        return Dialect.MSVC
    return Dialect.CLANG


def current_dialect() -> Dialect:
    return dialect_for_platform(platform.system())


def platform_name(system: str | None = None) -> str:
    """UnrealBuildTool platform name for a ``platform.system()`` value."""
    if system is None:
        system = platform.system()
    if system == "Windows":
        return "Win64"
    elif system == "Darwin":
        return "Mac"
    return "Linux"


def compiler_token(dialect: Dialect) -> str:
    """JSON-escaped text that ends the compiler executable in a command string.

    UnrealBuildTool always quotes the compiler path, so inside the JSON
    string it ends with an escaped quote: ``...cl.exe\\"`` on Windows and
    ``...clang++\\"`` elsewhere.
    """
    if dialect is Dialect.MSVC:
        return '.exe\\"'
    return 'clang++\\"'
