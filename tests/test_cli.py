"""Tests for cli.py: argument parsing and the CLI entry point."""

import argparse
import json
from unittest.mock import patch

import pytest

from unreal_codegen.cli import build_parser, cmd_gen, cmd_process, main
from unreal_codegen.pathutil import Dialect


def _make_args(**overrides):
    """Build a minimal argparse.Namespace matching the gen subcommand."""
    defaults = {
        "project": "/tmp/Game",
        "engine": None,
        "target": None,
        "with_engine": False,
        "headers": False,
        "skip_ubt": False,
        "jobs": 1,
        "verbose": False,
        "timeout": None,
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


class TestParser:
    def test_gen_defaults(self):
        args = build_parser().parse_args(["gen", "--project", "/P"])
        assert args.func is cmd_gen
        assert args.jobs == 1
        assert args.target is None
        assert not args.with_engine
        assert not args.headers

    def test_gen_flags(self):
        args = build_parser().parse_args(
            ["gen", "--project", "/P", "--target", "2", "--with-engine", "--headers", "--jobs", "4"]
        )
        assert args.target == 2
        assert args.with_engine
        assert args.headers
        assert args.jobs == 4

    def test_project_required(self):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["gen"])
        assert exc.value.code == 2

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_process_dialect_choices(self):
        args = build_parser().parse_args(
            ["process", "db.json", "--output-dir", "out", "--engine", "/UE", "--dialect", "msvc"]
        )
        assert args.func is cmd_process
        assert args.dialect == "msvc"

    def test_build_dry_run(self):
        args = build_parser().parse_args(["build", "--project", "/P", "--dry-run"])
        assert args.dry_run
        assert not hasattr(args, "engine")


class TestCommands:
    @patch("unreal_codegen.tools.generate_commands")
    def test_gen_passes_options(self, mock_gen, capsys):
        mock_gen.return_value = {"success": True, "message": "ok"}

        code = cmd_gen(_make_args(target=2, headers=True, jobs=0))

        assert code == 0
        mock_gen.assert_called_once_with(
            "/tmp/Game",
            engine=None,
            target=2,
            with_engine=False,
            headers=True,
            skip_ubt=False,
            jobs=1,
            verbose=False,
            timeout=None,
        )
        assert json.loads(capsys.readouterr().out)["success"] is True

    @patch("unreal_codegen.tools.generate_commands")
    def test_gen_failure_exit_code(self, mock_gen, capsys):
        mock_gen.return_value = {"success": False, "message": "nope", "errors": ["bad rsp"]}
        assert cmd_gen(_make_args()) == 1
        assert json.loads(capsys.readouterr().out)["message"] == "nope"

    @patch("unreal_codegen.tools.process_database")
    def test_process_dialect(self, mock_process, capsys):
        mock_process.return_value = {"success": True, "message": "ok"}
        args = build_parser().parse_args(
            ["process", "db.json", "--output-dir", "out", "--engine", "/UE", "--dialect", "clang"]
        )

        assert args.func(args) == 0
        assert mock_process.call_args.kwargs["dialect"] is Dialect.CLANG


class TestMain:
    def test_help_exits_zero(self, capsys):
        """--help should print help and exit 0."""
        with pytest.raises(SystemExit) as exc:
            main(["--help"])
        assert exc.value.code == 0
        assert "unreal-codegen" in capsys.readouterr().out

    def test_process_end_to_end(self, tmp_path, capsys):
        db = tmp_path / "compile_commands.json"
        db.write_text(
            "[\n\t{\n"
            '\t\t"file": "/Game/Source/A.cpp",\n'
            '\t\t"command": "\\"/usr/bin/clang++\\" -c \\"/Game/Source/A.cpp\\"",\n'
            '\t\t"directory": "/work"\n'
            "\t}\n]\n"
        )
        out_dir = tmp_path / "rsp"

        with pytest.raises(SystemExit) as exc:
            main(
                [
                    "process",
                    str(db),
                    "--output-dir",
                    str(out_dir),
                    "--engine",
                    "/UE",
                    "--dialect",
                    "clang",
                ]
            )

        assert exc.value.code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["files_processed"] == 1
        assert (out_dir / "compile_commands.json").exists()
        assert (out_dir / "_Game_Source_A.cpp.rsp").read_text() == '-c "/Game/Source/A.cpp"'

    def test_missing_project_exit_code(self, tmp_path, capsys):
        with patch("unreal_codegen.tools.find_uproject", return_value=None):
            with pytest.raises(SystemExit) as exc:
                main(["gen", "--project", str(tmp_path)])
        assert exc.value.code == 1
        assert "Could not find .uproject" in capsys.readouterr().out
