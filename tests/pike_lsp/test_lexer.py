"""
Tests for the in-process Pike lexer and LocalAnalysisProvider.
"""

from textwrap import dedent

import pytest

from src.pike_lsp.analysis.lexer import (
    KIND_CHAR,
    KIND_COMMENT,
    KIND_DIRECTIVE,
    KIND_IDENTIFIER,
    KIND_NUMBER,
    KIND_STRING,
    LocalAnalysisProvider,
    lex,
    string_literals,
)


def kinds(source, **kwargs):
    return [(token.text, token.kind) for token in lex(source, **kwargs)]


def literal_texts(source):
    return [source[lit.content_start:lit.content_end] for lit in string_literals(source)]


def test_basic_tokens():
    assert kinds("int x = 0x1F;") == [
        ("int", KIND_IDENTIFIER),
        ("x", KIND_IDENTIFIER),
        ("=", "operator"),
        ("0x1F", KIND_NUMBER),
        (";", "operator"),
    ]


def test_multi_character_operators():
    texts = [token.text for token in lex("a->b += c[..2]; ({ 1 }) ([ ]) x::y")]
    assert "->" in texts
    assert "+=" in texts
    assert ".." in texts
    assert "({" in texts and "})" in texts
    assert "([" in texts and "])" in texts
    assert "::" in texts


def test_comments_are_skipped_by_default():
    source = "int a; // \"not a string\"\n/* \"nor this\" */ int b;"
    assert [text for text, _ in kinds(source)] == ["int", "a", ";", "int", "b", ";"]
    assert (("// \"not a string\"", KIND_COMMENT) in kinds(source, include_comments=True))


def test_line_numbers_follow_multiline_tokens():
    source = 'string s = #"line one\nline two";\nint after;'
    after = [token for token in lex(source) if token.text == "after"][0]
    assert after.line == 3


def test_directive_only_at_line_start():
    source = '#include "module.h"\nint x = a # b;'
    tokens = kinds(source)
    assert tokens[0] == ('#include "module.h"', KIND_DIRECTIVE)
    assert ("#", "operator") in tokens
    assert literal_texts(source) == ["module.h"]


def test_literals_inside_directive_bodies():
    source = '#define GREETING "hello"\n#define PAIR(a) "x" \\\n  "y"\nstring s = GREETING;'
    assert literal_texts(source) == ["hello", "x", "y"]
    literal = list(string_literals(source))[0]
    assert source[literal.start:literal.end] == '"hello"'


def test_char_literal_does_not_open_string():
    source = "int q = '\"'; string s = \"ok\";"
    assert ("'\"'", KIND_CHAR) in kinds(source)
    assert literal_texts(source) == ["ok"]


@pytest.mark.parametrize("source, expected", [
    ('"plain"', ["plain"]),
    ('"esc \\" quote"', ['esc \\" quote']),
    ('#"multi\nline"', ["multi\nline"]),
    ('#{verbatim "quotes" here#}', ['verbatim "quotes" here']),
    ('"a" + "b"', ["a", "b"]),
    ('""', [""]),
])
def test_string_literal_contents(source, expected):
    assert literal_texts(source) == expected


def test_unterminated_string_stops_at_line_end():
    source = 'string s = "open\nint x;'
    literals = list(string_literals(source))
    assert len(literals) == 1
    assert not literals[0].terminated
    assert source[literals[0].content_start:literals[0].content_end] == "open"
    assert "x" in [token.text for token in lex(source)]


def test_literal_bounds_include_delimiters():
    source = 'x = #"<b>";'
    literal = list(string_literals(source))[0]
    assert source[literal.start:literal.end] == '#"<b>"'
    assert literal.terminated


def test_unicode_identifier_character_falls_back_to_operator():
    tokens = kinds("int é;")
    assert ("é", "operator") in tokens


class TestLocalAnalysisProvider:

    source = dedent("""\
        class Counter {
            int value;
            void bump() { value++; }
        }
        Counter c = Counter();
        int total = c->value + c.value;
        return total;
    """)

    def test_tokenize_payload(self):
        tokens = LocalAnalysisProvider().tokenize("int x;\nx = 1;")
        assert tokens[0] == {"text": "int", "line": 1}
        assert tokens[-1] == {"text": ";", "line": 2}

    @pytest.mark.parametrize("symbol, expected", [
        ("Counter", "file.pike:1"),
        ("value", "file.pike:2"),
        ("bump", "file.pike:3"),
        ("c", "file.pike:5"),
        ("total", "file.pike:6"),
        ("missing", None),
    ])
    def test_resolve_location(self, symbol, expected):
        provider = LocalAnalysisProvider()
        assert provider.resolve_location(self.source, "file.pike", symbol, 1) == expected

    def test_capabilities(self):
        provider = LocalAnalysisProvider()
        assert provider.supports("tokenize")
        assert provider.supports("resolve")
        assert not provider.supports("parse")
