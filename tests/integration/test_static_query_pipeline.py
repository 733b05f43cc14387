from __future__ import annotations

import asyncio
import json
from pathlib import Path

from conftest import DATASET, write_source

from groq_extract.runtime import use_groq_query

LIST_COMPONENT = """import { useGroqQuery } from 'groq-extract';

export default function Featured() {
  const post = useGroqQuery(`*[slug.current == "world"][0]`);
  return <p>{post.title}</p>;
}
"""


def _error_codes(root: Path) -> list[str]:
    path = root / ".groq_extract" / "events.jsonl"
    events = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    return [event["error_code"] for event in events if not event["ok"]]


def test_static_result_is_retrievable_by_literal_text(tmp_path: Path, make_controller) -> None:
    write_source(tmp_path, "src/components/featured.js", LIST_COMPONENT)
    write_source(tmp_path, "src/components/plain.js", "export const answer = 42;\n")
    controller = make_controller()

    summary = asyncio.run(controller.extract_all())

    assert summary.files_scanned == 2
    assert summary.static_queries == 1
    assert summary.failures == 0
    cache_root = tmp_path / ".cache" / "groq"
    assert controller.cache.root == cache_root.resolve()
    assert use_groq_query('*[slug.current == "world"][0]', cache_root) == DATASET[1]
    options = json.loads((cache_root / "options.json").read_text(encoding="utf-8"))
    assert options == {"autoRefs": False, "matchField": "id"}


def test_full_build_clears_stale_entries(tmp_path: Path, make_controller) -> None:
    stale = tmp_path / ".cache" / "groq" / "stale.json"
    stale.parent.mkdir(parents=True)
    stale.write_text("[]", encoding="utf-8")

    asyncio.run(make_controller().extract_all())

    assert not stale.exists()


def test_changed_component_recaches_static_query(tmp_path: Path, make_controller) -> None:
    component = write_source(tmp_path, "src/components/featured.js", LIST_COMPONENT)
    controller = make_controller()
    asyncio.run(controller.extract_all())

    component.write_text(LIST_COMPONENT.replace('"world"', '"hello"'), encoding="utf-8")
    outcome = asyncio.run(controller.handle_change(component))

    assert outcome.static_cached is True
    assert outcome.page_cached is False
    assert use_groq_query('*[slug.current == "hello"][0]', controller.cache.root) == DATASET[0]


def test_failures_are_isolated_per_file(tmp_path: Path, make_controller) -> None:
    write_source(
        tmp_path,
        "src/components/broken.js",
        'const posts = useGroqQuery(`*[title match "Hel*"]`);\n',
    )
    write_source(
        tmp_path,
        "src/components/fragment.js",
        "const posts = useGroqQuery(`*[${bySlug}]`);\n",
    )
    undecodable = tmp_path / "src" / "components" / "latin1.js"
    undecodable.write_bytes("const q = useGroqQuery(`*`); // caf\xe9\n".encode("latin-1"))
    write_source(tmp_path, "src/components/featured.js", LIST_COMPONENT)
    controller = make_controller()

    summary = asyncio.run(controller.extract_all())

    assert summary.files_scanned == 4
    assert summary.static_queries == 1
    assert summary.failures == 3
    assert sorted(_error_codes(tmp_path)) == [
        "evaluation_failed",
        "fragment_unresolved",
        "parse_failed",
    ]
    assert use_groq_query('*[slug.current == "world"][0]', controller.cache.root) == DATASET[1]


def test_change_without_markers_is_a_no_op(tmp_path: Path, make_controller) -> None:
    plain = write_source(tmp_path, "src/components/plain.js", "export const answer = 42;\n")
    controller = make_controller()
    asyncio.run(controller.extract_all())

    outcome = asyncio.run(controller.handle_change(plain))

    assert outcome.page_cached is False
    assert outcome.static_cached is False
    assert outcome.fragments_reloaded is False


def test_non_literal_hook_argument_does_not_stop_the_batch(tmp_path: Path, make_controller) -> None:
    write_source(tmp_path, "src/components/a.js", "const r = useGroqQuery(café);\n")
    write_source(tmp_path, "src/components/b.js", LIST_COMPONENT)
    controller = make_controller()

    summary = asyncio.run(controller.extract_all())

    assert summary.files_scanned == 2
    assert summary.static_queries == 1
    assert summary.failures == 0
    assert use_groq_query('*[slug.current == "world"][0]', controller.cache.root) == DATASET[1]
