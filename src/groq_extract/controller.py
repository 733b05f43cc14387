"""Batch extraction, incremental re-extraction and page context injection."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from groq_extract.cache import QueryCache
from groq_extract.config import CliOverrides, ExtractConfig, load_effective_config
from groq_extract.engine import DatasetProvider, QueryEngine, QueryEvaluationError, run_query
from groq_extract.extract import (
    ExtractionResult,
    QuerySpan,
    extract_queries,
    has_page_query_marker,
    has_static_query_marker,
)
from groq_extract.index import SourceWatcher, discover_files
from groq_extract.logging import JsonlEventLog
from groq_extract.pages import Page, PageRegistry
from groq_extract.parsing import ParseOptions, SourceParseError, load_parse_options
from groq_extract.paths import is_within, normalize_path
from groq_extract.rewrite import (
    FragmentStore,
    JoinOptions,
    load_join_options,
    substitute_context,
)
from groq_extract.runtime import load_page_query

logger = logging.getLogger(__name__)

EVENTS_FILE_NAME = "events.jsonl"


@dataclass(slots=True, frozen=True)
class BuildSummary:
    """Counters for one full extraction pass."""

    files_scanned: int
    page_queries: int
    static_queries: int
    failures: int


@dataclass(slots=True, frozen=True)
class ChangeOutcome:
    """What one file-change event did."""

    path: str
    fragments_reloaded: bool = False
    page_cached: bool = False
    pages_updated: int = 0
    static_cached: bool = False


class ExtractionController:
    """Runs extraction per file, one file or event at a time, to completion."""

    def __init__(
        self,
        config: ExtractConfig,
        engine: QueryEngine,
        dataset: DatasetProvider,
        registry: PageRegistry,
        *,
        cache: QueryCache | None = None,
        fragments: FragmentStore | None = None,
        events: JsonlEventLog | None = None,
        parse_options: ParseOptions | None = None,
    ) -> None:
        self._config = config
        self._engine = engine
        self._dataset = dataset
        self._registry = registry
        self._cache = cache or QueryCache(config.cache_dir)
        self._fragments = fragments or FragmentStore(config.fragments.entry_path)
        self._events = events
        self._parse_options = parse_options or load_parse_options(config.babel_config)

    @property
    def config(self) -> ExtractConfig:
        return self._config

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def fragments(self) -> FragmentStore:
        return self._fragments

    async def extract_all(self) -> BuildSummary:
        """Reset the cache, then extract every source file sequentially.

        Page queries are cached unprocessed; static queries are evaluated and
        their results cached. Pages are not touched.
        """
        self._cache.reset()
        self._cache.write_options(
            JoinOptions(
                match_field=self._config.joins.match_field,
                auto_refs=self._config.joins.auto_refs,
            )
        )
        if self._fragments.entry is not None:
            self._fragments.load()

        logger.info("Getting files for groq extraction...")
        records = discover_files(self._config.root, self._config.source_roots, self._config.sources)
        page_queries = 0
        static_queries = 0
        failures = 0
        for record in records:
            extraction = self._extract(record.path)
            if extraction is None:
                failures += 1
                continue
            if extraction.page is not None:
                self._cache_page_query(extraction.page)
                page_queries += 1
            if extraction.static is not None:
                if await self._process_static(extraction.static):
                    static_queries += 1
                else:
                    failures += 1
        logger.info("Finished getting files for query extraction")
        return BuildSummary(
            files_scanned=len(records),
            page_queries=page_queries,
            static_queries=static_queries,
            failures=failures,
        )

    async def handle_change(self, path: str | Path) -> ChangeOutcome:
        """Re-extract one changed file, refreshing pages that use it."""
        file_path = normalize_path(path)
        fragments_reloaded = False
        if is_within(file_path, self._config.fragments.dir):
            fragments_reloaded = self._fragments.load()
            logger.info("Re-save files that use the updated fragments to refresh them.")

        text = self._read(file_path)
        if text is None:
            return ChangeOutcome(path=file_path, fragments_reloaded=fragments_reloaded)
        page_marker = has_page_query_marker(text)
        static_marker = has_static_query_marker(text)
        if not page_marker and not static_marker:
            return ChangeOutcome(path=file_path, fragments_reloaded=fragments_reloaded)

        logger.info("Re-processing groq queries...")
        extraction = self._extract(file_path, text)
        if extraction is None:
            return ChangeOutcome(path=file_path, fragments_reloaded=fragments_reloaded)

        page_cached = False
        pages_updated = 0
        if extraction.page is not None:
            self._cache_page_query(extraction.page)
            page_cached = True
            pages = [page for _, page in self._registry.get_pages()]
            for page in pages:
                if not page.uses_component(file_path):
                    continue
                logger.info("Updating path: %s", page.path)
                if await self._inject_page(page, extraction.page.raw):
                    pages_updated += 1
            logger.info("Finished re-processing page queries")

        static_cached = False
        if extraction.static is not None:
            static_cached = await self._process_static(extraction.static)
            if static_cached:
                logger.info("Finished re-processing queries")
            else:
                logger.warning("There was a problem processing one of your static queries")

        return ChangeOutcome(
            path=file_path,
            fragments_reloaded=fragments_reloaded,
            page_cached=page_cached,
            pages_updated=pages_updated,
            static_cached=static_cached,
        )

    async def on_create_page(self, page: Page) -> bool:
        """Inject the cached page query result into a newly created page."""
        raw = load_page_query(page.component, self._cache.root)
        if raw is None:
            return False
        return await self._inject_page(page, raw)

    async def watch(
        self,
        watcher: SourceWatcher | None = None,
        *,
        stop: asyncio.Event | None = None,
        max_polls: int | None = None,
    ) -> None:
        """Poll for changes and handle each changed file in order."""
        active = watcher or SourceWatcher(self._config)
        active.prime()
        polls = 0
        while stop is None or not stop.is_set():
            for changed in active.poll():
                await self.handle_change(changed)
            polls += 1
            if max_polls is not None and polls >= max_polls:
                return
            await asyncio.sleep(self._config.poll_interval)

    def _read(self, path: str) -> str | None:
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error reading file: %s: %s", path, exc)
            self._record(path, "source", ok=False, error_code="parse_failed")
            return None

    def _extract(self, path: str, text: str | None = None) -> ExtractionResult | None:
        source = text if text is not None else self._read(path)
        if source is None:
            return None
        try:
            return extract_queries(path, source, self._parse_options)
        except SourceParseError as exc:
            logger.error("%s", exc)
            self._record(path, "source", ok=False, error_code="parse_failed")
            return None

    def _cache_page_query(self, span: QuerySpan) -> str:
        key = self._cache.put_page_query(span.path, span.raw)
        self._record(span.path, span.kind.value, ok=True, cache_key=key, metadata={"raw": span.raw})
        return key

    async def _process_static(self, span: QuerySpan) -> bool:
        try:
            outcome = await run_query(
                span.raw,
                self._dataset(),
                self._engine,
                fragments=self._fragments.fragments,
                join_options=load_join_options(self._cache.root),
                file=span.path,
            )
        except QueryEvaluationError as exc:
            logger.error("Error evaluating query in %s: %s", span.path, exc)
            logger.error("Query: %s", exc.query)
            self._record(span.path, span.kind.value, ok=False, error_code="evaluation_failed")
            return False
        if outcome is None:
            self._record(span.path, span.kind.value, ok=False, error_code="fragment_unresolved")
            return False
        key = self._cache.put_static_result(outcome.final_query, outcome.result)
        self._record(
            span.path,
            span.kind.value,
            ok=True,
            cache_key=key,
            metadata={"final_query": outcome.final_query},
        )
        return True

    async def _inject_page(self, page: Page, raw: str) -> bool:
        query = raw
        try:
            query = substitute_context(raw, page.context)
            outcome = await run_query(
                query,
                self._dataset(),
                self._engine,
                fragments=self._fragments.fragments,
                join_options=load_join_options(self._cache.root),
                file=page.component,
                strip_quotes=True,
            )
        except (QueryEvaluationError, TypeError, ValueError) as exc:
            logger.error("Error updating page %s (%s): %s", page.path, page.component, exc)
            logger.error("Query: %s", query)
            self._record(page.component, "page_update", ok=False, error_code="page_update_failed")
            return False
        if outcome is None:
            self._record(page.component, "page_update", ok=False, error_code="fragment_unresolved")
            return False
        self._registry.delete_page(page)
        self._registry.create_page(page.with_data(outcome.result))
        self._record(page.component, "page_update", ok=True, metadata={"page": page.path})
        return True

    def _record(
        self,
        path: str,
        kind: str,
        *,
        ok: bool,
        error_code: str | None = None,
        cache_key: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> None:
        if self._events is None:
            return
        self._events.record(
            path=path,
            kind=kind,
            ok=ok,
            error_code=error_code,
            cache_key=cache_key,
            metadata=metadata,
        )


def create_controller(
    root: str | Path,
    engine: QueryEngine,
    dataset: DatasetProvider,
    registry: PageRegistry,
    overrides: CliOverrides | None = None,
) -> ExtractionController:
    """Create a controller from the effective project configuration."""
    config = load_effective_config(Path(root), overrides=overrides)
    return ExtractionController(
        config,
        engine,
        dataset,
        registry,
        events=JsonlEventLog(config.data_dir / EVENTS_FILE_NAME),
    )
