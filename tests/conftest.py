from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from groq_extract.config import CliOverrides, load_effective_config
from groq_extract.controller import ExtractionController
from groq_extract.logging import JsonlEventLog
from groq_extract.pages import InMemoryPageRegistry

_QUERY_RE = re.compile(
    r'^\s*\*\s*(?:\[\s*(?P<field>[\w.]+)\s*==\s*(?P<value>"[^"]*"|\d+)\s*\])?'
    r"\s*(?P<first>\[0\])?\s*$"
)

DATASET = [
    {"_id": "a", "_type": "post", "slug": {"current": "hello"}, "title": "Hello"},
    {"_id": "b", "_type": "post", "slug": {"current": "world"}, "title": "World"},
]


class FakeResult:
    def __init__(self, value: object) -> None:
        self._value = value

    async def materialize(self) -> object:
        return self._value


class FakeEngine:
    """Evaluates `*`, `*[field == "value"]` and an optional trailing `[0]`."""

    def __init__(self) -> None:
        self.parsed: list[str] = []

    def parse(self, query: str) -> re.Match[str]:
        match = _QUERY_RE.match(query)
        if match is None:
            raise ValueError(f"Unexpected token in query: {query!r}")
        self.parsed.append(query)
        return match

    def evaluate(self, tree: re.Match[str], dataset: Sequence[Mapping[str, object]]) -> FakeResult:
        nodes = list(dataset)
        field = tree.group("field")
        if field is not None:
            expected = json.loads(tree.group("value"))
            nodes = [node for node in nodes if _lookup(node, field) == expected]
        if tree.group("first"):
            return FakeResult(nodes[0] if nodes else None)
        return FakeResult(nodes)


def _lookup(node: Mapping[str, object], dotted: str) -> object:
    current: object = node
    for part in dotted.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def write_source(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def registry() -> InMemoryPageRegistry:
    return InMemoryPageRegistry()


@pytest.fixture
def make_controller(tmp_path: Path, engine: FakeEngine, registry: InMemoryPageRegistry):
    def factory(**override_fields: object) -> ExtractionController:
        overrides = CliOverrides(
            mode="development",
            **override_fields,  # type: ignore[arg-type]
        )
        config = load_effective_config(tmp_path, overrides=overrides)
        return ExtractionController(
            config,
            engine,
            lambda: DATASET,
            registry,
            events=JsonlEventLog(config.data_dir / "events.jsonl"),
        )

    return factory
