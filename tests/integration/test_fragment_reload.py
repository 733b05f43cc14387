from __future__ import annotations

import asyncio
from pathlib import Path

from conftest import DATASET, write_source

from groq_extract.runtime import use_groq_query

COMPONENT = "const post = useGroqQuery(`*[${bySlug}][0]`);\n"


def test_fragment_edit_reloads_index_and_later_rewrites_use_it(
    tmp_path: Path, make_controller
) -> None:
    entry = write_source(tmp_path, "fragments/index.toml", "bySlug = 'slug.current == \"hello\"'\n")
    component = write_source(tmp_path, "src/components/featured.js", COMPONENT)
    controller = make_controller(fragments_dir=tmp_path / "fragments")

    summary = asyncio.run(controller.extract_all())

    assert summary.static_queries == 1
    assert controller.fragments.loaded is True
    assert use_groq_query('*[slug.current == "hello"][0]', controller.cache.root) == DATASET[0]
    assert use_groq_query("*[${bySlug}][0]", controller.cache.root) is None

    entry.write_text("bySlug = 'slug.current == \"world\"'\n", encoding="utf-8")
    reload_outcome = asyncio.run(controller.handle_change(entry))
    assert reload_outcome.fragments_reloaded is True
    assert controller.fragments.fragments == {"bySlug": 'slug.current == "world"'}

    change_outcome = asyncio.run(controller.handle_change(component))
    assert change_outcome.static_cached is True
    assert use_groq_query('*[slug.current == "world"][0]', controller.cache.root) == DATASET[1]


def test_broken_fragment_edit_keeps_previous_index(tmp_path: Path, make_controller) -> None:
    entry = write_source(tmp_path, "fragments/index.toml", "bySlug = 'slug.current == \"hello\"'\n")
    controller = make_controller(fragments_dir=tmp_path / "fragments")
    asyncio.run(controller.extract_all())

    entry.write_text("bySlug = [unterminated\n", encoding="utf-8")
    outcome = asyncio.run(controller.handle_change(entry))

    assert outcome.fragments_reloaded is False
    assert controller.fragments.fragments == {"bySlug": 'slug.current == "hello"'}
