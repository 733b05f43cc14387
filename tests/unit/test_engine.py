from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from conftest import DATASET, FakeEngine

from groq_extract.engine import QueryEvaluationError, load_dataset, load_engine, run_query
from groq_extract.rewrite import JoinOptions

OPTIONS = JoinOptions()


def test_run_query_strips_delimiters_but_reports_final_text(engine: FakeEngine) -> None:
    raw = '`*[slug.current == "hello"]`'

    outcome = asyncio.run(run_query(raw, DATASET, engine, fragments=None, join_options=OPTIONS))

    assert outcome is not None
    assert outcome.result == [DATASET[0]]
    assert outcome.final_query == raw
    assert engine.parsed == ['*[slug.current == "hello"]']


def test_run_query_expands_fragments_before_evaluation(engine: FakeEngine) -> None:
    fragments = {"bySlug": 'slug.current == "world"'}

    outcome = asyncio.run(
        run_query("*[${bySlug}][0]", DATASET, engine, fragments=fragments, join_options=OPTIONS)
    )

    assert outcome is not None
    assert outcome.result == DATASET[1]
    assert outcome.final_query == '*[slug.current == "world"][0]'


def test_run_query_returns_none_when_fragments_are_missing(engine: FakeEngine) -> None:
    outcome = asyncio.run(
        run_query("*[${bySlug}]", DATASET, engine, fragments=None, join_options=OPTIONS)
    )

    assert outcome is None
    assert engine.parsed == []


def test_run_query_wraps_engine_errors(engine: FakeEngine) -> None:
    with pytest.raises(QueryEvaluationError) as excinfo:
        asyncio.run(
            run_query(
                '`*[title match "hel*"]`',
                DATASET,
                engine,
                fragments=None,
                join_options=OPTIONS,
                file="/site/src/list.js",
            )
        )

    assert excinfo.value.file == "/site/src/list.js"
    assert excinfo.value.query == '*[title match "hel*"]'
    assert isinstance(excinfo.value.cause, ValueError)


def test_load_dataset_reads_json_array_and_ndjson(tmp_path: Path) -> None:
    array = tmp_path / "data.json"
    array.write_text(json.dumps(DATASET), encoding="utf-8")
    ndjson = tmp_path / "data.ndjson"
    ndjson.write_text("\n".join(json.dumps(node) for node in DATASET) + "\n\n", encoding="utf-8")

    assert load_dataset(array) == DATASET
    assert load_dataset(ndjson) == DATASET


def test_load_engine_instantiates_classes() -> None:
    loaded = load_engine("conftest:FakeEngine")

    assert isinstance(loaded, FakeEngine)


def test_load_engine_rejects_malformed_reference() -> None:
    with pytest.raises(ValueError, match="module:attribute"):
        load_engine("conftest.FakeEngine")


def test_static_query_keeps_quoted_literals_at_both_ends(engine: FakeEngine) -> None:
    raw = '"hello" in *[]._id == "hello"'

    with pytest.raises(QueryEvaluationError) as excinfo:
        asyncio.run(run_query(raw, DATASET, engine, fragments=None, join_options=OPTIONS))

    assert excinfo.value.query == raw


def test_page_initializer_quotes_are_stripped(engine: FakeEngine) -> None:
    outcome = asyncio.run(
        run_query(
            "'*[slug.current == \"world\"][0]'",
            DATASET,
            engine,
            fragments=None,
            join_options=OPTIONS,
            strip_quotes=True,
        )
    )

    assert outcome is not None
    assert outcome.result == DATASET[1]
