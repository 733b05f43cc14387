"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "groq_extract.toml"
MODE_ENV_VAR = "GROQ_EXTRACT_MODE"
BUILD_MODES = ("development", "production")

DEFAULT_SOURCE_DIRS = ("src",)
DEFAULT_INCLUDE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")
DEFAULT_EXCLUDE_GLOBS = ("**/node_modules/**", "**/*.d.ts")
DEFAULT_FRAGMENTS_ENTRY = "index.toml"
DEFAULT_MATCH_FIELD = "id"
DEFAULT_BABEL_CONFIG = ".babelrc"
DEFAULT_POLL_INTERVAL = 1.0


@dataclass(slots=True, frozen=True)
class SourcesConfig:
    """Where query-bearing source files are discovered."""

    dirs: tuple[str, ...]
    include_extensions: tuple[str, ...]
    exclude_globs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class FragmentsConfig:
    """Location of the fragments entry file, if fragments are used."""

    dir: Path | None
    entry: str

    @property
    def entry_path(self) -> Path | None:
        if self.dir is None:
            return None
        return self.dir / self.entry


@dataclass(slots=True, frozen=True)
class JoinsConfig:
    """Settings copied into the options artifact for join rewriting."""

    match_field: str
    auto_refs: bool


@dataclass(slots=True, frozen=True)
class ExtractConfig:
    """Fully merged extraction configuration."""

    root: Path
    mode: str
    cache_dir: Path
    data_dir: Path
    sources: SourcesConfig
    fragments: FragmentsConfig
    joins: JoinsConfig
    babel_config: Path
    poll_interval: float

    @property
    def source_roots(self) -> tuple[Path, ...]:
        return tuple(self.root / name for name in self.sources.dirs)

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "root": str(self.root),
            "mode": self.mode,
            "cache_dir": str(self.cache_dir),
            "data_dir": str(self.data_dir),
            "sources": {
                "dirs": list(self.sources.dirs),
                "include_extensions": list(self.sources.include_extensions),
                "exclude_globs": list(self.sources.exclude_globs),
            },
            "fragments": {
                "dir": str(self.fragments.dir) if self.fragments.dir is not None else None,
                "entry": self.fragments.entry,
            },
            "joins": {
                "match_field": self.joins.match_field,
                "auto_refs": self.joins.auto_refs,
            },
            "babel_config": str(self.babel_config),
            "poll_interval": self.poll_interval,
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    mode: str | None = None
    cache_dir: Path | None = None
    data_dir: Path | None = None
    fragments_dir: Path | None = None
    poll_interval: float | None = None


def default_cache_dir(root: Path, mode: str) -> Path:
    """Return the cache root selected by build mode."""
    if mode == "development":
        return root / ".cache" / "groq"
    return root / "public" / "static" / "groq"


def default_mode() -> str:
    raw = os.getenv(MODE_ENV_VAR, "").strip().lower()
    if raw in BUILD_MODES:
        return raw
    return "production"


def default_config(root: Path) -> ExtractConfig:
    """Build default config for a given project root."""
    resolved_root = root.resolve()
    mode = default_mode()
    return ExtractConfig(
        root=resolved_root,
        mode=mode,
        cache_dir=default_cache_dir(resolved_root, mode),
        data_dir=resolved_root / ".groq_extract",
        sources=SourcesConfig(
            dirs=DEFAULT_SOURCE_DIRS,
            include_extensions=DEFAULT_INCLUDE_EXTENSIONS,
            exclude_globs=DEFAULT_EXCLUDE_GLOBS,
        ),
        fragments=FragmentsConfig(dir=None, entry=DEFAULT_FRAGMENTS_ENTRY),
        joins=JoinsConfig(match_field=DEFAULT_MATCH_FIELD, auto_refs=False),
        babel_config=resolved_root / DEFAULT_BABEL_CONFIG,
        poll_interval=DEFAULT_POLL_INTERVAL,
    )


def load_project_config_file(root: Path) -> dict[str, object]:
    """Load optional groq_extract.toml from the project root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_string(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def _optional_mode(value: object, name: str, default: str) -> str:
    mode = _optional_string(value, name, default)
    if mode not in BUILD_MODES:
        raise ValueError(f"Config field '{name}' must be one of {', '.join(BUILD_MODES)}.")
    return mode


def _optional_positive_number(value: object, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"Config field '{name}' must be a positive number.")
    return float(value)


def merge_config(
    base: ExtractConfig, project_payload: dict[str, object], overrides: CliOverrides
) -> ExtractConfig:
    """Merge defaults, project config, then CLI/startup overrides."""
    build_payload = _get_table(project_payload, "build")
    sources_payload = _get_table(project_payload, "sources")
    fragments_payload = _get_table(project_payload, "fragments")
    joins_payload = _get_table(project_payload, "joins")
    parser_payload = _get_table(project_payload, "parser")
    watch_payload = _get_table(project_payload, "watch")

    mode = _optional_mode(build_payload.get("mode"), "build.mode", base.mode)
    cache_dir = default_cache_dir(base.root, mode)
    if "cache_dir" in build_payload:
        cache_dir = base.root / _optional_string(
            build_payload["cache_dir"], "build.cache_dir", ""
        )
    data_dir = base.data_dir
    if "data_dir" in build_payload:
        data_dir = base.root / _optional_string(build_payload["data_dir"], "build.data_dir", "")

    dirs = base.sources.dirs
    if "dirs" in sources_payload:
        dirs = _tuple_of_strings(sources_payload["dirs"], "sources", "dirs")
    include_extensions = base.sources.include_extensions
    if "include_extensions" in sources_payload:
        include_extensions = _tuple_of_strings(
            sources_payload["include_extensions"], "sources", "include_extensions"
        )
    exclude_globs = base.sources.exclude_globs
    if "exclude_globs" in sources_payload:
        exclude_globs = _tuple_of_strings(
            sources_payload["exclude_globs"], "sources", "exclude_globs"
        )

    fragments_dir = base.fragments.dir
    if "dir" in fragments_payload:
        fragments_dir = base.root / _optional_string(
            fragments_payload["dir"], "fragments.dir", ""
        )
    fragments_entry = _optional_string(
        fragments_payload.get("entry"), "fragments.entry", base.fragments.entry
    )
    if Path(fragments_entry).suffix not in {".toml", ".json"}:
        raise ValueError("Config field 'fragments.entry' must name a .toml or .json file.")

    match_field = _optional_string(
        joins_payload.get("match_field"), "joins.match_field", base.joins.match_field
    )
    auto_refs = base.joins.auto_refs
    if "auto_refs" in joins_payload:
        raw_auto_refs = joins_payload["auto_refs"]
        if not isinstance(raw_auto_refs, bool):
            raise ValueError("Config field 'joins.auto_refs' must be a boolean.")
        auto_refs = raw_auto_refs

    babel_config = base.babel_config
    if "babel_config" in parser_payload:
        babel_config = base.root / _optional_string(
            parser_payload["babel_config"], "parser.babel_config", ""
        )

    poll_interval = _optional_positive_number(
        watch_payload.get("poll_interval"), "watch.poll_interval", base.poll_interval
    )

    merged = ExtractConfig(
        root=base.root,
        mode=mode,
        cache_dir=cache_dir,
        data_dir=data_dir,
        sources=SourcesConfig(
            dirs=dirs,
            include_extensions=include_extensions,
            exclude_globs=exclude_globs,
        ),
        fragments=FragmentsConfig(dir=fragments_dir, entry=fragments_entry),
        joins=JoinsConfig(match_field=match_field, auto_refs=auto_refs),
        babel_config=babel_config,
        poll_interval=poll_interval,
    )
    return apply_cli_overrides(merged, overrides, cache_dir_explicit="cache_dir" in build_payload)


def apply_cli_overrides(
    config: ExtractConfig,
    overrides: CliOverrides,
    *,
    cache_dir_explicit: bool = False,
) -> ExtractConfig:
    """Apply startup overrides at highest precedence."""
    mode = _optional_mode(overrides.mode, "overrides.mode", config.mode)
    cache_dir = config.cache_dir
    if mode != config.mode and not cache_dir_explicit:
        cache_dir = default_cache_dir(config.root, mode)
    if overrides.cache_dir is not None:
        cache_dir = overrides.cache_dir
    poll_interval = _optional_positive_number(
        overrides.poll_interval, "overrides.poll_interval", config.poll_interval
    )
    fragments = config.fragments
    if overrides.fragments_dir is not None:
        fragments = FragmentsConfig(
            dir=(config.root / overrides.fragments_dir).resolve(), entry=fragments.entry
        )
    data_dir = overrides.data_dir or config.data_dir
    return ExtractConfig(
        root=config.root,
        mode=mode,
        cache_dir=cache_dir.resolve(),
        data_dir=data_dir.resolve(),
        sources=config.sources,
        fragments=fragments,
        joins=config.joins,
        babel_config=config.babel_config,
        poll_interval=poll_interval,
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> ExtractConfig:
    """Load effective config using merge order defaults -> project config -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
