from __future__ import annotations

import os
from pathlib import Path

from groq_extract.config import CliOverrides, load_effective_config
from groq_extract.index import SourceWatcher
from groq_extract.paths import normalize_path


def _bump(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))


def test_poll_reports_changed_sources_and_fragment_entry(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    page = tmp_path / "src" / "page.js"
    page.write_text("export const a = 1;\n", encoding="utf-8")
    fragments = tmp_path / "fragments"
    fragments.mkdir()
    entry = fragments / "index.toml"
    entry.write_text('title = "name"\n', encoding="utf-8")
    config = load_effective_config(tmp_path, CliOverrides(fragments_dir=fragments))
    watcher = SourceWatcher(config)

    watcher.prime()
    assert watcher.poll() == ()
    assert normalize_path(entry) in watcher.tracked_paths

    _bump(page, "export const a = 2;\n")
    _bump(entry, 'title = "name, slug"\n')
    added = tmp_path / "src" / "new.js"
    added.write_text("export {};\n", encoding="utf-8")

    assert watcher.poll() == tuple(
        sorted([normalize_path(page), normalize_path(entry), normalize_path(added)])
    )
    assert watcher.poll() == ()


def test_first_poll_without_prime_only_records_state(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "page.js").write_text("export {};\n", encoding="utf-8")
    watcher = SourceWatcher(load_effective_config(tmp_path))

    assert watcher.poll() == ()
    assert len(watcher.tracked_paths) == 1
