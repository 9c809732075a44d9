#!/usr/bin/env python3
"""
Unreal Codegen - compile database generation CLI

Usage:
    unreal-codegen init --project <dir>             Create UnrealNvim.json
    unreal-codegen gen --project <dir>              Generate compile_commands.json
    unreal-codegen gen --project <dir> --headers    ...then run UnrealHeaderTool
    unreal-codegen build --project <dir> --dry-run  Print the build command
    unreal-codegen run --project <dir>              Launch the editor
    unreal-codegen process <db> --output-dir <dir> --engine <root>

Every command prints a JSON result on stdout; logs go to stderr.
"""

import argparse
import json
import logging
import sys

from unreal_codegen.core import DEBUG
from unreal_codegen.pathutil import Dialect

logger = logging.getLogger("unreal-codegen")


def _emit(result: dict) -> int:
    print(json.dumps(result, indent=2, default=str))
    return 0 if result.get("success") else 1


def cmd_init(args):
    """Create the project config."""
    from unreal_codegen import tools

    return _emit(tools.init_project(args.project, engine=args.engine, force=args.force))


def cmd_gen(args):
    """Generate the compile database."""
    from unreal_codegen import tools

    result = tools.generate_commands(
        args.project,
        engine=args.engine,
        target=args.target,
        with_engine=args.with_engine,
        headers=args.headers,
        skip_ubt=args.skip_ubt,
        jobs=max(1, args.jobs),
        verbose=args.verbose,
        timeout=args.timeout,
    )
    for error in result.get("errors", []):
        logger.warning("Warning: %s", error)
    return _emit(result)


def cmd_build(args):
    """Build the project."""
    from unreal_codegen import tools

    return _emit(
        tools.build_project(
            args.project, target=args.target, dry_run=args.dry_run, timeout=args.timeout
        )
    )


def cmd_run(args):
    """Run the project."""
    from unreal_codegen import tools

    return _emit(
        tools.run_project(
            args.project, target=args.target, dry_run=args.dry_run, timeout=args.timeout
        )
    )


def cmd_process(args):
    """Rewrite an existing compile database."""
    from unreal_codegen import tools

    dialect = Dialect(args.dialect) if args.dialect else None
    return _emit(
        tools.process_database(
            args.input,
            args.output_dir,
            args.engine,
            output_file=args.out,
            with_engine=args.with_engine,
            dialect=dialect,
            jobs=max(1, args.jobs),
            verbose=args.verbose,
        )
    )


def _configure_logging(verbose: bool):
    if DEBUG:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unreal-codegen",
        description="Unreal Codegen - clang compile database generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Examples:
  unreal-codegen init --project ~/Projects/MyGame
  unreal-codegen init --project ~/Projects/MyGame --engine ~/UnrealEngine/UE_5.3
  unreal-codegen gen --project ~/Projects/MyGame --target 2
  unreal-codegen gen --project ~/Projects/MyGame --with-engine --headers
  unreal-codegen build --project ~/Projects/MyGame --dry-run
  unreal-codegen process Engine/compile_commands.json --output-dir rsp --engine Engine
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub, engine=True, target=True):
        sub.add_argument(
            "--project", required=True, help="Project directory or .uproject file"
        )
        if engine:
            sub.add_argument("--engine", help="Engine root (default: from config)")
        if target:
            sub.add_argument(
                "--target", type=int, help="1-based target index (default: DefaultTarget)"
            )
        sub.add_argument(
            "--verbose", action="store_true", help="Log progress to stderr"
        )

    init_parser = subparsers.add_parser("init", help="Create UnrealNvim.json")
    add_common(init_parser, target=False)
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing config"
    )
    init_parser.set_defaults(func=cmd_init)

    gen_parser = subparsers.add_parser("gen", help="Generate compile_commands.json")
    add_common(gen_parser)
    gen_parser.add_argument(
        "--with-engine",
        action="store_true",
        help="Also write response files for engine sources (slower)",
    )
    gen_parser.add_argument(
        "--headers",
        action="store_true",
        help="Run UnrealHeaderTool after generating the database",
    )
    gen_parser.add_argument(
        "--skip-ubt",
        action="store_true",
        help="Reuse <engine>/compile_commands.json instead of running UnrealBuildTool",
    )
    gen_parser.add_argument(
        "--jobs", type=int, default=1, help="Threads for response file writes"
    )
    gen_parser.add_argument(
        "--timeout", type=float, help="Timeout in seconds for each engine tool run"
    )
    gen_parser.set_defaults(func=cmd_gen)

    for name, func, help_text in (
        ("build", cmd_build, "Build the project"),
        ("run", cmd_run, "Run the project"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        add_common(sub, engine=False)
        sub.add_argument(
            "--dry-run", action="store_true", help="Only print the command"
        )
        sub.add_argument("--timeout", type=float, help="Timeout in seconds")
        sub.set_defaults(func=func)

    process_parser = subparsers.add_parser(
        "process", help="Rewrite an existing compile_commands.json"
    )
    process_parser.add_argument("input", help="compile_commands.json to rewrite")
    process_parser.add_argument(
        "--output-dir", required=True, help="Directory for generated response files"
    )
    process_parser.add_argument("--engine", required=True, help="Engine root")
    process_parser.add_argument(
        "--out", help="Rewritten database path (default: <output-dir>/compile_commands.json)"
    )
    process_parser.add_argument(
        "--with-engine", action="store_true", help="Also process engine sources"
    )
    process_parser.add_argument(
        "--dialect",
        choices=[d.value for d in Dialect],
        help="Response file dialect (default: host platform)",
    )
    process_parser.add_argument(
        "--jobs", type=int, default=1, help="Threads for response file writes"
    )
    process_parser.add_argument(
        "--verbose", action="store_true", help="Log progress to stderr"
    )
    process_parser.set_defaults(func=cmd_process)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(getattr(args, "verbose", False))
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
