# Compile database rewriting for clang-based language servers

from .command_line import rewrite_arguments
from .processor import (
    CompileDatabaseError,
    ProcessingResult,
    ScanPhase,
    ScanState,
    process_compile_commands,
    write_database,
)
from .response_file import (
    MANDATORY_HEADERS,
    ResponseFileNotFound,
    translate_response_file,
)

__all__ = [
    "rewrite_arguments",
    "CompileDatabaseError",
    "ProcessingResult",
    "ScanPhase",
    "ScanState",
    "process_compile_commands",
    "write_database",
    "MANDATORY_HEADERS",
    "ResponseFileNotFound",
    "translate_response_file",
]
