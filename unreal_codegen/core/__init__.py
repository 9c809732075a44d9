from .config import (
    CONFIG_FILE_NAME,
    CONFIG_VERSION,
    DEBUG,
    BuildTarget,
    ConfigError,
    ProjectConfig,
    config_path,
    default_config,
    load_config,
    write_config,
)
from .toolchain import (
    ToolError,
    build_command,
    build_script_path,
    clang_database_command,
    format_command,
    headers_command,
    run_command,
    run_tool,
    ubt_path,
)
