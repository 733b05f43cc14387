"""Query engine collaborator interface and the rewrite-then-evaluate helper."""

from __future__ import annotations

import importlib
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from groq_extract.rewrite import JoinOptions, rewrite_query, strip_delimiters

logger = logging.getLogger(__name__)

Dataset = Sequence[Mapping[str, object]]
DatasetProvider = Callable[[], Dataset]


class ResultHandle(Protocol):
    """Lazily materialized evaluation result."""

    async def materialize(self) -> object:
        """Return the plain result value."""


class QueryEngine(Protocol):
    """Parser/evaluator for the query language."""

    def parse(self, query: str) -> object:
        """Parse query text, raising on syntax errors."""

    def evaluate(self, tree: object, dataset: Dataset) -> ResultHandle:
        """Evaluate a parsed query against the dataset."""


class QueryEvaluationError(Exception):
    """Raised when the engine fails to parse, evaluate or materialize a query."""

    def __init__(self, file: str | None, query: str, cause: Exception) -> None:
        super().__init__(f"{cause}")
        self.file = file
        self.query = query
        self.cause = cause


@dataclass(slots=True, frozen=True)
class QueryOutcome:
    """Evaluated result plus the rewritten text used for static cache keys."""

    result: object
    final_query: str


async def run_query(
    raw: str,
    dataset: Dataset,
    engine: QueryEngine,
    *,
    fragments: Mapping[str, object] | None,
    join_options: JoinOptions,
    file: str | None = None,
    strip_quotes: bool = False,
) -> QueryOutcome | None:
    """Rewrite and evaluate one query.

    Returns None when fragment expansion fails. ``final_query`` is the text
    after fragment and join rewriting but before delimiter stripping.
    ``strip_quotes`` also drops one enclosing quote pair, for page initializers.
    """
    final_query = rewrite_query(raw, fragments, join_options)
    if final_query is None:
        return None
    stripped = strip_delimiters(final_query, quotes=strip_quotes)
    try:
        tree = engine.parse(stripped)
        handle = engine.evaluate(tree, dataset)
        result = await handle.materialize()
    except Exception as exc:
        raise QueryEvaluationError(file, stripped, exc) from exc
    return QueryOutcome(result=result, final_query=final_query)


def load_engine(reference: str) -> QueryEngine:
    """Instantiate an engine from ``module:attribute``; classes and factories are called."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError("Engine must be given as 'module:attribute'.")
    module = importlib.import_module(module_name)
    target: object = module
    for part in attribute.split("."):
        target = getattr(target, part)
    if isinstance(target, type):
        target = target()
    elif callable(target) and not hasattr(target, "parse"):
        target = target()
    return target  # type: ignore[return-value]


def load_dataset(path: Path) -> list[Mapping[str, object]]:
    """Load content nodes from a JSON array or an NDJSON export."""
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        payload = json.loads(stripped)
        if not isinstance(payload, list):
            raise ValueError(f"Dataset {path} must be a JSON array.")
        nodes = payload
    else:
        nodes = [json.loads(line) for line in text.splitlines() if line.strip()]
    output = [node for node in nodes if isinstance(node, dict)]
    logger.info("Loaded %d content nodes from %s", len(output), path)
    return output
