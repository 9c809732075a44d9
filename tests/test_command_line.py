"""Tests for the inline argument rewriter."""

from unreal_codegen.compile_db.command_line import (
    REWRITE_STEPS,
    TRIPLE_QUOTE_PLACEHOLDER,
    collapse_doubled_quotes,
    normalize_backslashes,
    protect_triple_quotes,
    restore_triple_quotes,
    rewrite_arguments,
    split_arguments,
    strip_line_terminator,
    unescape_boundary_quotes,
    unescape_define_and_include,
)


# ---------------------------------------------------------------------------
# Individual passes
# ---------------------------------------------------------------------------


class TestPasses:
    def test_protect_and_restore_triple_quotes(self):
        text = r'-DSTR=\"\"\"x\"\"\"'
        protected = protect_triple_quotes(text)
        assert protected == f"-DSTR={TRIPLE_QUOTE_PLACEHOLDER}x{TRIPLE_QUOTE_PLACEHOLDER}"
        assert "\\" not in protected
        assert restore_triple_quotes(protected) == text

    def test_define_and_include_opening_quote(self):
        assert unescape_define_and_include(r'-D\"A=1\" -I\"/inc\"') == r'-D"A=1\" -I"/inc\"'

    def test_collapse_doubled_quotes(self):
        assert collapse_doubled_quotes(r'x=\"\"') == r'x=\""'

    def test_closing_quote_before_space(self):
        assert unescape_boundary_quotes(r'"a\" -c') == '"a" -c'

    def test_opening_quote_after_space(self):
        assert unescape_boundary_quotes(r'-c \"a"') == '-c "a"'

    def test_closing_quote_before_line_terminator(self):
        assert unescape_boundary_quotes(r'"a.obj\"",') == '"a.obj"",'

    def test_embedded_quote_kept(self):
        assert unescape_boundary_quotes(r'-DX=a\"b') == r'-DX=a\"b'

    def test_backslashes(self):
        assert normalize_backslashes(r'"C:\\Game\\Source"') == '"C:/Game/Source"'

    def test_strip_line_terminator(self):
        assert strip_line_terminator(' -c -o x.o",') == "-c -o x.o"

    def test_strip_line_terminator_without_comma(self):
        assert strip_line_terminator('-c "x.o""') == '-c "x.o"'

    def test_strip_line_terminator_trailing_whitespace(self):
        assert strip_line_terminator('-c", \r') == "-c"

    def test_split_arguments(self):
        assert split_arguments('-I"a" -D"b" "c.cpp"') == '-I"a"\n-D"b"\n"c.cpp"'

    def test_step_order(self):
        assert [step.__name__ for step in REWRITE_STEPS] == [
            "protect_triple_quotes",
            "unescape_define_and_include",
            "collapse_doubled_quotes",
            "unescape_boundary_quotes",
            "normalize_backslashes",
            "strip_line_terminator",
            "split_arguments",
            "restore_triple_quotes",
        ]


# ---------------------------------------------------------------------------
# Full rewrite
# ---------------------------------------------------------------------------


class TestRewriteArguments:
    def test_windows_paths_with_spaces(self):
        tail = r' -c -I\"C:\\Inc Dir\" -DFOO=1 \"C:\\src\\a.cpp\" -o \"C:\\out\\a.obj\"",'
        assert rewrite_arguments(tail) == (
            '-c -I"C:/Inc Dir"\n-DFOO=1 "C:/src/a.cpp"\n-o "C:/out/a.obj"'
        )

    def test_clang_command_tail(self):
        tail = (
            r' -c -pipe -I\"/ue/Engine/Source\" -D\"WITH_EDITOR=1\"'
            r' \"/proj/Source/A.cpp\"",'
        )
        assert rewrite_arguments(tail) == (
            '-c -pipe -I"/ue/Engine/Source"\n-D"WITH_EDITOR=1"\n"/proj/Source/A.cpp"'
        )

    def test_triple_quotes_survive(self):
        tail = r' -DSTR=\"\"\"x\"\"\" -c",'
        assert rewrite_arguments(tail) == r'-DSTR=\"\"\"x\"\"\" -c'

    def test_unquoted_arguments_stay_on_one_line(self):
        assert rewrite_arguments(' -c -O2 -g",') == "-c -O2 -g"
