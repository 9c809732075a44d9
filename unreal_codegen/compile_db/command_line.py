"""Rewrite inline compile arguments into a response file body.

The input is the raw remainder of a ``"command"`` line after the compiler
executable, still carrying the JSON string escaping UnrealBuildTool applied
(``\\"`` for quotes, ``\\\\`` for backslashes) and the line terminator
(``",``). The rewrite is a fixed sequence of textual passes rather than a
shell tokenizer; each pass is a separate function so it can be exercised on
its own, and :data:`REWRITE_STEPS` fixes their order.
"""

import re

TRIPLE_QUOTE = '\\"\\"\\"'
TRIPLE_QUOTE_PLACEHOLDER = "__3Q_PLACEHOLDER__"

_ESCAPED_QUOTE = '\\"'
# Escaped quote that closes an argument: followed by whitespace, or by the
# closing quote of the JSON string at the end of the line.
_CLOSING_ESCAPED_QUOTE = re.compile(r'\\"(?=\s|"\s*,?\s*$)')
# Escaped quote that opens an argument.
_OPENING_ESCAPED_QUOTE = re.compile(r'(?<=\s)\\"')
_LINE_TERMINATOR = re.compile(r'"?\s*,?\s*$')


def protect_triple_quotes(args: str) -> str:
    return args.replace(TRIPLE_QUOTE, TRIPLE_QUOTE_PLACEHOLDER)


def unescape_define_and_include(args: str) -> str:
    """``-D\\"`` and ``-I\\"`` lose the escape on their opening quote."""
    args = args.replace('-D\\"', '-D"')
    return args.replace('-I\\"', '-I"')


def collapse_doubled_quotes(args: str) -> str:
    return args.replace('\\"\\"', '\\""')


def unescape_boundary_quotes(args: str) -> str:
    """Un-escape quotes that open or close an argument.

    Quotes embedded in the middle of an argument stay escaped.
    """
    args = _CLOSING_ESCAPED_QUOTE.sub('"', args)
    return _OPENING_ESCAPED_QUOTE.sub('"', args)


def normalize_backslashes(args: str) -> str:
    """Escaped backslashes (``\\\\`` in the JSON text) become ``/``."""
    return args.replace("\\\\", "/")


def strip_line_terminator(args: str) -> str:
    """Drop the JSON string's closing quote and the trailing comma."""
    return _LINE_TERMINATOR.sub("", args, count=1).strip()


def split_arguments(args: str) -> str:
    return args.replace('" ', '"\n')


def restore_triple_quotes(args: str) -> str:
    return args.replace(TRIPLE_QUOTE_PLACEHOLDER, TRIPLE_QUOTE)


REWRITE_STEPS = (
    protect_triple_quotes,
    unescape_define_and_include,
    collapse_doubled_quotes,
    unescape_boundary_quotes,
    normalize_backslashes,
    strip_line_terminator,
    split_arguments,
    restore_triple_quotes,
)


def rewrite_arguments(args: str) -> str:
    """Turn a command tail into a response file body, one argument group per line."""
    for step in REWRITE_STEPS:
        args = step(args)
    return args
