"""Locate page and static query declarations and slice their exact source text."""

from __future__ import annotations

import re
from typing import Final

from tree_sitter import Node

from groq_extract.extract.models import ExtractionResult, QueryKind, QuerySpan
from groq_extract.parsing import ParseOptions, SyntaxTree, parse_source

PAGE_QUERY_NAME: Final[str] = "groqQuery"
STATIC_QUERY_HOOK: Final[str] = "useGroqQuery"

PAGE_QUERY_MARKER: Final[re.Pattern[str]] = re.compile(
    rf"export\s+(?:const|let|var)\s+{PAGE_QUERY_NAME}\b"
)

_DECLARATION_TYPES = {"lexical_declaration", "variable_declaration"}
_STRING_LITERAL_TYPES = {"string", "template_string"}


def has_page_query_marker(text: str) -> bool:
    """Cheap pre-check before building a syntax tree for page queries."""
    return PAGE_QUERY_MARKER.search(text) is not None


def has_static_query_marker(text: str) -> bool:
    """Cheap pre-check before building a syntax tree for static queries."""
    return STATIC_QUERY_HOOK in text


def extract_queries(
    path: str,
    text: str,
    options: ParseOptions | None = None,
) -> ExtractionResult:
    """Extract at most one page span and one static span from a source file.

    Files without either marker are skipped without parsing. When a file
    holds several matches of one kind the last one in document order wins.
    Raises ``SourceParseError`` when the tree cannot be built.
    """
    want_page = has_page_query_marker(text)
    want_static = has_static_query_marker(text)
    if not want_page and not want_static:
        return ExtractionResult(path=path)

    tree = parse_source(path, text, options)
    page: QuerySpan | None = None
    static: QuerySpan | None = None
    for node in _walk(tree.root):
        if want_page and node.type == "export_statement":
            page = _page_span(tree, node) or page
        elif want_static and node.type == "call_expression":
            static = _static_span(tree, node) or static
    return ExtractionResult(path=path, page=page, static=static)


def _walk(root: Node) -> list[Node]:
    """Pre-order, document-order list of every node in the tree."""
    ordered: list[Node] = []
    stack: list[Node] = [root]
    while stack:
        node = stack.pop()
        ordered.append(node)
        stack.extend(reversed(node.children))
    return ordered


def _page_span(tree: SyntaxTree, node: Node) -> QuerySpan | None:
    declaration = node.child_by_field_name("declaration")
    if declaration is None or declaration.type not in _DECLARATION_TYPES:
        return None
    span: QuerySpan | None = None
    for declarator in declaration.named_children:
        if declarator.type != "variable_declarator":
            continue
        name = declarator.child_by_field_name("name")
        value = declarator.child_by_field_name("value")
        if name is None or value is None:
            continue
        if tree.text_of(name.start_byte, name.end_byte) != PAGE_QUERY_NAME:
            continue
        span = QuerySpan(
            kind=QueryKind.PAGE,
            path=tree.path,
            raw=tree.text_of(value.start_byte, value.end_byte),
            start_byte=value.start_byte,
            end_byte=value.end_byte,
        )
    return span


def _static_span(tree: SyntaxTree, node: Node) -> QuerySpan | None:
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "identifier":
        return None
    if tree.text_of(callee.start_byte, callee.end_byte) != STATIC_QUERY_HOOK:
        return None
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return None
    first = next((child for child in arguments.named_children if child.type != "comment"), None)
    if first is None or first.type not in _STRING_LITERAL_TYPES:
        return None
    # One delimiter character (quote or backtick) is trimmed from each end.
    start = first.start_byte + 1
    end = first.end_byte - 1
    return QuerySpan(
        kind=QueryKind.STATIC,
        path=tree.path,
        raw=tree.text_of(start, end),
        start_byte=start,
        end_byte=end,
    )
