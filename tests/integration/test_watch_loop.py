from __future__ import annotations

import asyncio
from pathlib import Path

from conftest import DATASET, write_source

from groq_extract.paths import normalize_path
from groq_extract.runtime import use_groq_query

COMPONENT = 'const post = useGroqQuery(`*[slug.current == "hello"][0]`);\n'


class ScriptedWatcher:
    def __init__(self, batches: list[tuple[str, ...]]) -> None:
        self._batches = list(batches)
        self.primed = False

    def prime(self) -> None:
        self.primed = True

    def poll(self) -> tuple[str, ...]:
        if not self._batches:
            return ()
        return self._batches.pop(0)


def test_watch_handles_each_reported_change(tmp_path: Path, make_controller) -> None:
    controller = make_controller(poll_interval=0.01)
    asyncio.run(controller.extract_all())
    component = write_source(tmp_path, "src/components/featured.js", COMPONENT)
    watcher = ScriptedWatcher([(), (normalize_path(component),)])

    asyncio.run(controller.watch(watcher, max_polls=3))

    assert watcher.primed is True
    assert use_groq_query('*[slug.current == "hello"][0]', controller.cache.root) == DATASET[0]


def test_watch_stops_when_event_is_set(tmp_path: Path, make_controller) -> None:
    controller = make_controller(poll_interval=0.01)
    asyncio.run(controller.extract_all())

    async def run() -> None:
        stop = asyncio.Event()
        stop.set()
        await controller.watch(ScriptedWatcher([]), stop=stop)

    asyncio.run(run())
