from __future__ import annotations

import pytest

from groq_extract.parsing import ParseOptions, SourceParseError, parse_source


def test_parse_source_keeps_exact_bytes() -> None:
    text = "const title = 'héllo';\nexport default title;\n"

    tree = parse_source("/site/src/a.js", text)

    assert tree.source == text.encode("utf-8")
    assert tree.root.type == "program"
    assert tree.text_of(14, 22) == "'héllo'"


def test_jsx_and_typescript_sources_parse() -> None:
    jsx = parse_source("/site/src/a.js", "export default () => <div className='x'>hi</div>;\n")
    tsx = parse_source(
        "/site/src/b.tsx", "const n: number = 1;\nexport default () => <span>{n}</span>;\n"
    )

    assert not jsx.root.has_error
    assert not tsx.root.has_error


def test_syntax_errors_recover_by_default() -> None:
    tree = parse_source("/site/src/a.js", "const = ;\n")

    assert tree.root.has_error


def test_syntax_errors_raise_without_recovery() -> None:
    with pytest.raises(SourceParseError, match="Error parsing file: /site/src/a.js"):
        parse_source("/site/src/a.js", "const = ;\n", ParseOptions(error_recovery=False))


def test_slice_splitting_a_character_is_a_parse_error() -> None:
    tree = parse_source("/site/src/a.js", "const café = 1;\n")

    with pytest.raises(SourceParseError, match="/site/src/a.js"):
        tree.text_of(6, 10)
