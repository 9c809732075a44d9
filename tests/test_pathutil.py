"""Tests for the path utility module."""

import pytest

from unreal_codegen.pathutil import (
    Dialect,
    compiler_token,
    dialect_for_platform,
    escape_path,
    file_exists,
    is_under_root,
    normalize_path,
    platform_name,
)


# ---------------------------------------------------------------------------
# normalize_path
# ---------------------------------------------------------------------------


class TestNormalizePath:
    def test_forward_slashes_unchanged(self):
        assert normalize_path("/home/user/Game/Source") == "/home/user/Game/Source"

    def test_backslashes_converted(self):
        assert normalize_path("C:\\Engine\\Source") == "C:/Engine/Source"

    def test_mixed_separators(self):
        assert normalize_path("C:/Engine\\Source/Runtime") == "C:/Engine/Source/Runtime"

    def test_repeated_separators_collapse(self):
        assert normalize_path("C://Engine///Source") == "C:/Engine/Source"

    def test_json_escaped_backslashes(self):
        assert normalize_path("C:\\\\Engine\\\\Source") == "C:/Engine/Source"

    def test_empty_string(self):
        assert normalize_path("") == ""

    def test_none(self):
        assert normalize_path(None) is None

    @pytest.mark.parametrize(
        "path",
        [
            "C:\\\\Engine\\\\Source\\\\Foo.cpp",
            "/a//b\\\\c\\d",
            "\\\\server\\share",
            "relative/path/",
            "",
        ],
    )
    def test_idempotent(self, path):
        once = normalize_path(path)
        assert normalize_path(once) == once


# ---------------------------------------------------------------------------
# is_under_root
# ---------------------------------------------------------------------------


class TestIsUnderRoot:
    def test_file_under_engine(self):
        assert is_under_root("C:/Engine/Source/Foo.cpp", "C:/Engine")

    def test_mixed_separators(self):
        assert is_under_root("C:\\\\Engine\\\\Source\\\\Foo.cpp", "C:\\Engine")

    def test_root_matches_as_substring_anywhere(self):
        # Substring semantics: the root text does not need to start the path.
        assert is_under_root("D:/Backup/C:/Engine/Foo.cpp", "C:/Engine")

    def test_root_name_prefix_of_sibling_directory(self):
        assert is_under_root("C:/EngineProject/Foo.cpp", "C:/Engine")

    def test_unrelated_project(self):
        assert not is_under_root("C:/MyEngineProject/Foo.cpp", "C:/Engine")

    def test_project_file(self):
        assert not is_under_root("/home/u/Game/Source/A.cpp", "/opt/UE_5.3")


class TestFileExists:
    def test_existing_file(self, tmp_path):
        f = tmp_path / "a.rsp"
        f.write_text("-c")
        assert file_exists(f)
        assert file_exists(str(f))

    def test_missing_file(self, tmp_path):
        assert not file_exists(tmp_path / "missing.rsp")

    def test_directory_is_not_a_file(self, tmp_path):
        assert not file_exists(tmp_path)

    def test_bad_input_does_not_raise(self):
        assert not file_exists(None)
        assert not file_exists("bad\0path")


class TestEscapePath:
    def test_backslashes(self):
        assert escape_path("C:\\\\Game\\Source\\A.cpp") == "C:/Game/Source/A.cpp"

    def test_quotes_escaped(self):
        assert escape_path('a"b') == 'a\\"b'


class TestDialect:
    def test_windows_is_msvc(self):
        assert dialect_for_platform("Windows") is Dialect.MSVC

    @pytest.mark.parametrize("system", ["Darwin", "Linux"])
    def test_unix_is_clang(self, system):
        assert dialect_for_platform(system) is Dialect.CLANG

    def test_compiler_tokens(self):
        assert compiler_token(Dialect.MSVC) == '.exe\\"'
        assert compiler_token(Dialect.CLANG) == 'clang++\\"'

    @pytest.mark.parametrize(
        "system, expected",
        [("Windows", "Win64"), ("Darwin", "Mac"), ("Linux", "Linux")],
    )
    def test_platform_name(self, system, expected):
        assert platform_name(system) == expected
