"""MCP Server for Unreal compile database generation.

Tools:
  - generate_compile_commands: run UnrealBuildTool and rewrite the database
  - init_project: create UnrealNvim.json for a project
  - get_build_command / get_run_command: command lines for the project target

Usage:
    # Run directly (stdio transport)
    python -m unreal_codegen.mcp_server

    # Add to an MCP client config:
    {
        "mcpServers": {
            "unreal-codegen": {
                "command": "unreal-codegen-mcp",
                "env": {"UNREAL_CODEGEN_PROJECT": "/path/to/MyGame"}
            }
        }
    }
"""

import json
import logging
import os
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from unreal_codegen import tools
from unreal_codegen.core import DEBUG

logger = logging.getLogger("unreal-codegen")

server = Server("unreal-codegen")

_PROJECT_PROPERTY = {
    "type": "string",
    "description": "Project directory or .uproject path (default: UNREAL_CODEGEN_PROJECT)",
}
_TARGET_PROPERTY = {
    "type": "integer",
    "description": "1-based target index from UnrealNvim.json (default: DefaultTarget)",
}


def _default_project() -> str:
    return os.environ.get("UNREAL_CODEGEN_PROJECT", "")


# =============================================================================
# Tools
# =============================================================================


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="generate_compile_commands",
            description="""Generate a clang-compatible compile_commands.json for an Unreal project.

Runs UnrealBuildTool in GenerateClangDatabase mode, rewrites every entry to use
a clang-style response file and writes the result to the project directory.
Returns counts and per-entry errors.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "project": _PROJECT_PROPERTY,
                    "target": _TARGET_PROPERTY,
                    "with_engine": {
                        "type": "boolean",
                        "description": "Also write response files for engine sources",
                        "default": False,
                    },
                    "headers": {
                        "type": "boolean",
                        "description": "Run UnrealHeaderTool afterwards",
                        "default": False,
                    },
                    "skip_ubt": {
                        "type": "boolean",
                        "description": "Reuse the engine's existing compile_commands.json",
                        "default": False,
                    },
                },
            },
        ),
        Tool(
            name="init_project",
            description="Create UnrealNvim.json for a project, auto-detecting the engine if not given.",
            inputSchema={
                "type": "object",
                "properties": {
                    "project": _PROJECT_PROPERTY,
                    "engine": {"type": "string", "description": "Engine root"},
                },
            },
        ),
        Tool(
            name="get_build_command",
            description="Return the command line that builds the project target.",
            inputSchema={
                "type": "object",
                "properties": {"project": _PROJECT_PROPERTY, "target": _TARGET_PROPERTY},
            },
        ),
        Tool(
            name="get_run_command",
            description="Return the command line that launches the project target.",
            inputSchema={
                "type": "object",
                "properties": {"project": _PROJECT_PROPERTY, "target": _TARGET_PROPERTY},
            },
        ),
    ]


def dispatch_tool(name: str, arguments: dict) -> dict:
    project = arguments.get("project") or _default_project()

    if name == "generate_compile_commands":
        return tools.generate_commands(
            project,
            target=arguments.get("target"),
            with_engine=arguments.get("with_engine", False),
            headers=arguments.get("headers", False),
            skip_ubt=arguments.get("skip_ubt", False),
        )
    elif name == "init_project":
        return tools.init_project(project, engine=arguments.get("engine"))
    elif name == "get_build_command":
        return tools.build_project(project, target=arguments.get("target"), dry_run=True)
    elif name == "get_run_command":
        return tools.run_project(project, target=arguments.get("target"), dry_run=True)
    return {"success": False, "message": f"Unknown tool: {name}"}


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    try:
        result = dispatch_tool(name, arguments or {})
    except Exception as e:
        logger.exception("Tool %s failed", name)
        result = {"success": False, "message": str(e)}
    return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]


# =============================================================================
# Resources (project info)
# =============================================================================


@server.list_resources()
async def list_resources():
    project = _default_project()
    if not project:
        return []
    try:
        _, _, project_name = tools.resolve_project(project)
    except ValueError:
        return []
    return [
        {
            "uri": f"unreal://project/{project_name}",
            "name": f"Project: {project_name}",
            "description": "Unreal Engine project build configuration",
            "mimeType": "application/json",
        }
    ]


@server.read_resource()
async def read_resource(uri: str):
    uri = str(uri)
    project = _default_project()
    if not uri.startswith("unreal://project/") or not project:
        return json.dumps({"error": f"Unknown resource: {uri}"})

    from unreal_codegen.core import ConfigError, load_config

    try:
        uproject, project_dir, project_name = tools.resolve_project(project)
    except ValueError as e:
        return json.dumps({"error": str(e)})

    info = {"name": project_name, "project_file": str(uproject)}
    try:
        config = load_config(project_dir)
        info["engine_dir"] = config.engine_dir
        info["engine_version"] = config.engine_ver
        info["targets"] = [t.to_dict() for t in config.targets]
        info["default_target"] = config.default_target
    except ConfigError as e:
        info["config_error"] = str(e)

    compile_commands = project_dir / tools.DATABASE_FILE_NAME
    info["compile_commands"] = str(compile_commands) if compile_commands.exists() else None
    return json.dumps(info, indent=2)


# =============================================================================
# Main
# =============================================================================


async def main():
    """Run the MCP server."""
    if DEBUG:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s %(levelname)s: %(message)s",
            stream=sys.stderr,
        )
    else:
        logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    print("Unreal Codegen MCP Server", file=sys.stderr)
    print(f"Project: {_default_project() or '(not configured)'}", file=sys.stderr)

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


def cli_main():
    """Entry point for the unreal-codegen-mcp command."""
    import asyncio

    asyncio.run(main())


if __name__ == "__main__":
    cli_main()
