"""Tests for engine tool paths and command construction."""

import subprocess
from unittest.mock import patch

import pytest

from unreal_codegen.core.config import BuildTarget
from unreal_codegen.core.toolchain import (
    ToolError,
    binary_suffix,
    build_command,
    build_script_path,
    clang_database_command,
    editor_path,
    format_command,
    headers_command,
    run_command,
    run_tool,
    ubt_path,
)


class TestToolPaths:
    def test_ubt_ue5(self):
        assert (
            ubt_path("/opt/UE", 5.3, system="Linux")
            == "/opt/UE/Engine/Binaries/DotNET/UnrealBuildTool/UnrealBuildTool"
        )

    def test_ubt_ue4(self):
        assert (
            ubt_path("C:/UE_4.27", 4.27, system="Windows")
            == "C:/UE_4.27/Engine/Binaries/DotNET/UnrealBuildTool.exe"
        )

    @pytest.mark.parametrize(
        "system, expected",
        [
            ("Windows", "/UE/Engine/Build/BatchFiles/Build.bat"),
            ("Darwin", "/UE/Engine/Build/BatchFiles/Mac/Build.sh"),
            ("Linux", "/UE/Engine/Build/BatchFiles/Linux/Build.sh"),
        ],
    )
    def test_build_script(self, system, expected):
        assert build_script_path("/UE", system=system) == expected

    def test_binary_suffix(self):
        assert binary_suffix(BuildTarget("G", "Development")) == ""
        assert binary_suffix(BuildTarget("G", "DebugGame", platform_name="Win64")) == "-Win64-DebugGame"

    def test_editor_path_windows(self):
        assert (
            editor_path("C:/UE", None, None, "", system="Windows")
            == "C:/UE/Engine/Binaries/Win64/UnrealEditor.exe"
        )

    def test_project_binary_mac(self):
        assert (
            editor_path("/UE", "/P", "Game", "-Mac-Shipping", system="Darwin")
            == "/P/Binaries/Mac/Game-Mac-Shipping.app/Contents/MacOS/Game-Mac-Shipping"
        )


class TestCommands:
    target = BuildTarget(
        "MyGame", "Development", with_editor=True, ubt_extra_flags="-NoHotReload -x", platform_name="Linux"
    )

    def test_clang_database(self):
        assert clang_database_command("ubt", "/P/MyGame.uproject", self.target) == [
            "ubt",
            "-mode=GenerateClangDatabase",
            "-project=/P/MyGame.uproject",
            "-game",
            "-engine",
            "-NoHotReload",
            "-x",
            "MyGameEditor",
            "Development",
            "Linux",
        ]

    def test_headers(self):
        argv = headers_command("ubt", "/P/MyGame.uproject", BuildTarget("MyGame"))
        assert argv == [
            "ubt",
            "-project=/P/MyGame.uproject",
            "MyGameEditor",
            "Development",
            "Linux",
            "-headers",
        ]

    def test_build(self):
        argv = build_command("Build.sh", "/P/MyGame.uproject", BuildTarget("MyGame"))
        assert argv == [
            "Build.sh",
            "MyGameEditor",
            "Development",
            "Linux",
            "-project=/P/MyGame.uproject",
            "-waitmutex",
        ]

    def test_run_editor(self):
        argv = run_command("/UE", "/P", "MyGame", "/P/MyGame.uproject", BuildTarget("MyGame"), system="Linux")
        assert argv == ["/UE/Engine/Binaries/Linux/UnrealEditor", "/P/MyGame.uproject"]

    def test_run_game(self):
        target = BuildTarget("MyGame", "Shipping", with_editor=False)
        argv = run_command("/UE", "/P", "MyGame", "/P/MyGame.uproject", target, system="Linux")
        assert argv == ["/P/Binaries/Linux/MyGame-Linux-Shipping"]

    def test_format_command(self):
        assert format_command(["a b/ubt", "-x", "-project=/P/G.uproject"]) == '"a b/ubt" -x -project=/P/G.uproject'


class TestRunTool:
    def test_success(self):
        completed = subprocess.CompletedProcess(["ubt"], 0, stdout="ok", stderr="")
        with patch("unreal_codegen.core.toolchain.subprocess.run", return_value=completed) as run:
            result = run_tool(["ubt", "-x"], cwd="/UE", timeout=5)
        assert result.returncode == 0
        run.assert_called_once_with(
            ["ubt", "-x"], cwd="/UE", capture_output=True, text=True, timeout=5
        )

    def test_nonzero_exit_returned(self, caplog):
        completed = subprocess.CompletedProcess(["ubt"], 6, stdout="", stderr="boom")
        with patch("unreal_codegen.core.toolchain.subprocess.run", return_value=completed):
            result = run_tool(["/UE/ubt"])
        assert result.returncode == 6
        assert any("exited with 6" in r.getMessage() for r in caplog.records)

    def test_missing_executable(self, tmp_path):
        with pytest.raises(ToolError, match="Tool not found"):
            run_tool([str(tmp_path / "no-such-tool")])

    def test_timeout(self):
        with patch(
            "unreal_codegen.core.toolchain.subprocess.run",
            side_effect=subprocess.TimeoutExpired("ubt", 1),
        ):
            with pytest.raises(ToolError, match="timed out"):
                run_tool(["/UE/ubt"], timeout=1)
