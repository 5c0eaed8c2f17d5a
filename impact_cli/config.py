"""Configuration loading for impact-cli.

Sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. A ``.env`` file (read with python-dotenv)
    3. Process environment variables
    4. Explicit overrides (CLI flags, passed as kwargs)

Example:
    >>> config = load_config(commit_limit=50)
    >>> config.commit_limit
    50
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

from .exceptions import ConfigurationError
from .identity import parse_alias_lines

ENV_PREFIX = "IMPACT_"

DEFAULT_IGNORED_EXTENSIONS = "json,csv,lock,txt,package-lock.json,yarn.lock,pnpm-lock.yaml"
DEFAULT_IGNORED_FOLDERS = "node_modules,target,build,dist,.git"

# Bucket names
SOURCE_CODE = "Source Code"
TESTS = "Tests"
GENERATED = "Generated/Artifacts"
LOCKFILES = "Lockfiles"
MINIFIED = "Sourcemaps/Minified"
DOCUMENTATION = "Documentation"
CONFIG_DATA = "Config/Data"
OTHER = "Other"


@dataclass(frozen=True)
class BucketRule:
    """A named group of fnmatch patterns, matched against the lower-cased path."""

    name: str
    patterns: Tuple[str, ...]


# First matching rule wins; unmatched paths fall into OTHER.
DEFAULT_BUCKETS: Tuple[BucketRule, ...] = (
    BucketRule(
        TESTS,
        (
            "test/*", "tests/*", "*/test/*", "*/tests/*", "*__tests__*",
            "*test.java", "*spec.js", "*spec.ts", "*_test.go", "*_test.py",
            "test_*.py", "*/test_*.py",
        ),
    ),
    BucketRule(
        GENERATED,
        ("dist/*", "build/*", "*.next/*", "*.nuxt/*", "coverage/*", "*/coverage/*"),
    ),
    BucketRule(
        LOCKFILES,
        ("*package-lock.json", "*yarn.lock", "*pnpm-lock.yaml", "*poetry.lock", "*cargo.lock", "*go.sum"),
    ),
    BucketRule(MINIFIED, ("*.map", "*.min.js", "*.min.css")),
    BucketRule(DOCUMENTATION, ("*.md", "*.rst", "*.adoc", "docs/*", "*/docs/*")),
    BucketRule(
        SOURCE_CODE,
        (
            "src/*", "app/*", "lib/*", "*backend/*", "*frontend/*",
            "*.py", "*.go", "*.java", "*.kt", "*.scala", "*.js", "*.jsx", "*.ts", "*.tsx",
            "*.rs", "*.c", "*.h", "*.cc", "*.cpp", "*.hpp", "*.cs", "*.rb", "*.php",
            "*.swift", "*.m", "*.sh",
        ),
    ),
    BucketRule(CONFIG_DATA, ("*.json", "*.yml", "*.yaml", "*.toml", "*.xml", "*.ini", "*.cfg")),
)


@dataclass(frozen=True)
class WarningPolicy:
    """Thresholds for the structural warnings of a meaningful-change analysis.

    Attributes:
        huge_change_insertions: total insertions above which a low source share is flagged
        minimal_source_share: source share of insertions considered "minimal"
        untested_source_insertions: source insertions that should come with test changes
        generated_majority_share: share of insertions in generated/lockfile/minified buckets
        dominant_commit_share: share of total churn a single commit may own before flagging
        dominant_commit_min_commits: minimum commits in range for the dominance check
        dominant_commit_min_churn: minimum total churn for the dominance check
    """

    huge_change_insertions: int = 1000
    minimal_source_share: float = 0.10
    untested_source_insertions: int = 500
    generated_majority_share: float = 0.70
    dominant_commit_share: float = 0.50
    dominant_commit_min_commits: int = 3
    dominant_commit_min_churn: int = 100

    def __post_init__(self) -> None:
        for name in ("minimal_source_share", "generated_majority_share", "dominant_commit_share"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0.0 and 1.0", key=name)


DEFAULT_WARNING_POLICY = WarningPolicy()


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for one analysis run.

    Attributes:
        ignored_extensions: path suffixes excluded from the category breakdown
        ignored_folders: folder prefixes dropped before classification
        aliases: author email -> canonical display name
        genders: author email (or canonical name) -> free-form gender tag
        commit_limit: commits to visit, 0 = unbounded
        table_limit: contributors shown before the rest is grouped as "Others"
        top_files: most impactful files kept per contributor
        branch: label attached to commits for display only
        all_refs: walk every ref instead of HEAD only
        count_renames_as_edits: count RENAME/COPY toward files edited
    """

    ignored_extensions: Tuple[str, ...] = ()
    ignored_folders: Tuple[str, ...] = ()
    aliases: Dict[str, str] = field(default_factory=dict)
    genders: Dict[str, str] = field(default_factory=dict)
    commit_limit: int = 10
    table_limit: int = 20
    top_files: int = 10
    branch: str = ""
    all_refs: bool = False
    count_renames_as_edits: bool = False
    buckets: Tuple[BucketRule, ...] = DEFAULT_BUCKETS
    warning_policy: WarningPolicy = DEFAULT_WARNING_POLICY

    def __post_init__(self) -> None:
        if self.commit_limit < 0:
            raise ConfigurationError("commit_limit must be >= 0 (0 = unbounded)", key="commit_limit")
        if self.table_limit < 1:
            raise ConfigurationError("table_limit must be at least 1", key="table_limit")
        if self.top_files < 0:
            raise ConfigurationError("top_files must be >= 0", key="top_files")


def normalize_ignored_extensions(entries) -> Tuple[str, ...]:
    """Normalize ignored-extension entries into lower-case path suffixes.

    Bare words become extensions (``md`` -> ``.md``); entries that already
    contain a dot (``.lock``, ``package-lock.json``) are literal suffixes.
    """
    result = []
    for entry in entries:
        entry = entry.strip().lower()
        if not entry:
            continue
        if "." not in entry:
            entry = "." + entry
        if entry not in result:
            result.append(entry)
    return tuple(result)


def normalize_folders(entries) -> Tuple[str, ...]:
    result = []
    for entry in entries:
        entry = entry.strip().strip("/")
        if entry and entry not in result:
            result.append(entry)
    return tuple(result)


def _split_list(value: str) -> list:
    return [part for part in value.split(",") if part.strip()]


def _parse_int(value: str, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Expected an integer for {key}, got {value!r}", key=key)


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _read_sources(env_file: Optional[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    path = Path(env_file) if env_file else Path(".env")
    if path.is_file():
        values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    elif env_file:
        raise ConfigurationError(f"Config file not found: {env_file}", key="env_file")
    values.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})
    return values


def load_config(env_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None,
                **overrides: Any) -> AnalysisConfig:
    """Build an AnalysisConfig from defaults, .env, environment and overrides.

    ``environ`` replaces the .env/process-environment lookup entirely
    (used by tests). Overrides set to None are ignored.
    """
    raw = dict(environ) if environ is not None else _read_sources(env_file)

    def get(name: str, default: Optional[str] = None) -> Optional[str]:
        return raw.get(ENV_PREFIX + name, default)

    aliases: Dict[str, str] = {}
    aliases_file = get("ALIASES_FILE")
    if aliases_file:
        try:
            aliases.update(parse_alias_lines(Path(aliases_file).read_text(encoding="utf-8")))
        except OSError as e:
            raise ConfigurationError(f"Cannot read aliases file: {e}", key="IMPACT_ALIASES_FILE")
    aliases.update(parse_alias_lines(get("ALIASES", "")))

    values: Dict[str, Any] = {
        "ignored_extensions": normalize_ignored_extensions(
            _split_list(get("IGNORED_EXTENSIONS", DEFAULT_IGNORED_EXTENSIONS))
        ),
        "ignored_folders": normalize_folders(_split_list(get("IGNORED_FOLDERS", DEFAULT_IGNORED_FOLDERS))),
        "aliases": aliases,
        "genders": parse_alias_lines(get("GENDERS", "")),
        "commit_limit": _parse_int(get("COMMIT_LIMIT", "10"), "IMPACT_COMMIT_LIMIT"),
        "table_limit": _parse_int(get("TABLE_LIMIT", "20"), "IMPACT_TABLE_LIMIT"),
        "top_files": _parse_int(get("TOP_FILES", "10"), "IMPACT_TOP_FILES"),
        "branch": get("BRANCH", ""),
        "all_refs": _parse_bool(get("ALL_REFS", "false")),
        "count_renames_as_edits": _parse_bool(get("COUNT_RENAMES_AS_EDITS", "false")),
    }

    known = {f.name for f in fields(AnalysisConfig)}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigurationError(f"Unknown configuration option: {key}", key=key)
        if value is None:
            continue
        if key == "ignored_extensions":
            value = normalize_ignored_extensions(value)
        elif key == "ignored_folders":
            value = normalize_folders(value)
        elif key in ("aliases", "genders"):
            value = {**values[key], **value}
        values[key] = value

    return AnalysisConfig(**values)
