"""Tree-sitter backed syntax trees for JavaScript and TypeScript sources."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

import tree_sitter_javascript as ts_js
import tree_sitter_typescript as ts_ts
from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

BASE_PLUGINS: tuple[str, ...] = ("jsx",)


class SourceParseError(Exception):
    """Raised when a syntax tree cannot be built for a source file."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Error parsing file: {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(slots=True, frozen=True)
class ParseOptions:
    """Parser options; plugin handles mirror the host project's compiler plugins."""

    plugins: tuple[str, ...] = BASE_PLUGINS
    error_recovery: bool = True


@dataclass(slots=True, frozen=True)
class SyntaxTree:
    """Parsed tree plus the exact bytes its offsets refer to."""

    path: str
    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text_of(self, start_byte: int, end_byte: int) -> str:
        """Slice the original source by byte offsets."""
        try:
            return self.source[start_byte:end_byte].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SourceParseError(self.path, f"span splits a character: {exc}") from exc


_parser_cache: dict[str, Parser] = {}


def grammar_for(path: str, plugins: tuple[str, ...]) -> str:
    """Pick a grammar name for a path: javascript, typescript or tsx."""
    suffix = Path(path).suffix.lower()
    if suffix == ".tsx":
        return "tsx"
    if suffix in {".ts", ".mts", ".cts"}:
        return "typescript"
    if any("typescript" in plugin.lower() for plugin in plugins):
        return "tsx" if "jsx" in plugins else "typescript"
    return "javascript"


def _get_parser(grammar: str) -> Parser:
    parser = _parser_cache.get(grammar)
    if parser is not None:
        return parser
    if grammar == "tsx":
        language = Language(ts_ts.language_tsx())
    elif grammar == "typescript":
        language = Language(ts_ts.language_typescript())
    else:
        language = Language(ts_js.language())
    parser = Parser()
    parser.language = language
    _parser_cache[grammar] = parser
    return parser


def parse_source(path: str, text: str, options: ParseOptions | None = None) -> SyntaxTree:
    """Parse source text into a syntax tree with byte offsets."""
    opts = options or ParseOptions()
    grammar = grammar_for(path, opts.plugins)
    try:
        source = text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise SourceParseError(path, str(exc)) from exc
    tree = _get_parser(grammar).parse(source)
    if tree.root_node.has_error and not opts.error_recovery:
        raise SourceParseError(path, "syntax error")
    if tree.root_node.has_error:
        logger.debug("Recovered from syntax errors in %s", path)
    return SyntaxTree(path=path, source=source, tree=tree)


def plugin_handle(plugin: str) -> str | None:
    """Convert a compiler plugin package name into a camelCase parser handle."""
    if not plugin.startswith("@babel"):
        return None
    handle = plugin.replace("@babel/plugin-", "").replace("proposal-", "")
    parts = [part for part in re.split(r"[-_/\s]+", handle) if part]
    if not parts:
        return None
    return parts[0].lower() + "".join(part[:1].upper() + part[1:].lower() for part in parts[1:])


def load_parse_options(babel_config: Path | None) -> ParseOptions:
    """Seed plugins with the base set plus handles found in a JSON compiler config."""
    plugins = list(BASE_PLUGINS)
    if babel_config is None or not babel_config.is_file():
        return ParseOptions(plugins=tuple(plugins))
    try:
        payload = json.loads(babel_config.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable parser config %s: %s", babel_config, exc)
        return ParseOptions(plugins=tuple(plugins))
    raw_plugins = payload.get("plugins") if isinstance(payload, dict) else None
    if isinstance(raw_plugins, list):
        for plugin in raw_plugins:
            if not isinstance(plugin, str):
                continue
            handle = plugin_handle(plugin)
            if handle is not None and handle not in plugins:
                plugins.append(handle)
    return ParseOptions(plugins=tuple(plugins))
