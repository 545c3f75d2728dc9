"""Run configuration for the Zotero recommender."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any

from zotero_recommender.cache import CACHE_FILENAME
from zotero_recommender.utils import S2_MAX_INPUT_PAPERS, S2_MAX_RESULT_LIMIT


def default_zotero_db_path() -> str:
    return os.path.join(os.path.expanduser("~"), "Zotero", "zotero.sqlite")


def default_cache_path() -> str:
    return os.path.join(os.path.expanduser("~"), "Zotero", "zotero_cache")


@dataclass(frozen=True)
class RecommenderConfig:
    """Immutable snapshot of the settings for one run.

    Attributes:
        zotero_db_path: Path to the Zotero database (usually zotero.sqlite)
        cache_path: Directory holding the paper ID cache
        s2_api_key: Semantic Scholar API key. Without one the public rate
            limits apply.
        result_limit: Number of recommendations to request
        input_papers: Maximum number of paper IDs sent to the recommendation
            endpoint (Semantic Scholar allows at most 100)
        force_update: Look up again titles cached as "no match"
        collection: Name of the collection to draw titles from. None means
            the whole library, or the interactive picker when enabled.
        include_subcollections: Also match items in direct subcollections
        pick_collection: Show the collection picker when no collection is given
        light: Use the light theme in the terminal UI
        json_output: Print the recommendations as JSON and silence diagnostics
        plain_output: Print a plain listing instead of the terminal UI
        timeout: HTTP timeout in seconds
        rate_limit: Maximum Semantic Scholar requests per minute
        verbose: Enable debug logging
    """

    zotero_db_path: str = ""
    cache_path: str = ""
    s2_api_key: str | None = None
    result_limit: int = 10
    input_papers: int = S2_MAX_INPUT_PAPERS
    force_update: bool = False
    collection: str | None = None
    include_subcollections: bool = True
    pick_collection: bool = True
    light: bool = False
    json_output: bool = False
    plain_output: bool = False
    timeout: float = 20.0
    rate_limit: int = 100
    verbose: bool = False

    def __post_init__(self) -> None:
        # Frozen: defaults that depend on the environment are filled in here.
        if not self.zotero_db_path:
            object.__setattr__(self, "zotero_db_path", default_zotero_db_path())
        if not self.cache_path:
            object.__setattr__(self, "cache_path", default_cache_path())
        if self.s2_api_key is None and os.environ.get("S2_API_KEY"):
            object.__setattr__(self, "s2_api_key", os.environ["S2_API_KEY"])

    @property
    def cache_file(self) -> str:
        return os.path.join(self.cache_path, CACHE_FILENAME)

    @property
    def quiet(self) -> bool:
        return self.json_output

    def validate(self) -> str | None:
        """Return an error message for invalid settings, None if valid."""
        if not 1 <= self.input_papers <= S2_MAX_INPUT_PAPERS:
            return f"--input-papers must be between 1 and {S2_MAX_INPUT_PAPERS}, got {self.input_papers}"
        if not 1 <= self.result_limit <= S2_MAX_RESULT_LIMIT:
            return f"--result-limit must be between 1 and {S2_MAX_RESULT_LIMIT}, got {self.result_limit}"
        if self.timeout <= 0:
            return f"--timeout must be positive, got {self.timeout}"
        return None

    def with_collection(self, collection: str | None) -> RecommenderConfig:
        """Copy of this config scoped to ``collection`` (after interactive picking)."""
        return replace(self, collection=collection)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecommenderConfig:
        """Create config from a dictionary (e.g., loaded from YAML).

        Unknown keys and values of the wrong type raise ``ValueError`` so
        mistakes in config files are reported instead of misbehaving later.
        """
        types = {f.name: f.type for f in fields(cls)}
        unknown = sorted(set(data) - set(types))
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")
        return cls(**{key: _check_type(key, types[key], value) for key, value in data.items()})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary for serialization (API key omitted)."""
        data = asdict(self)
        data.pop("s2_api_key")
        return data


_TYPES: dict[str, tuple[type, ...]] = {
    "str": (str,),
    "int": (int,),
    "float": (int, float),
    "bool": (bool,),
}


def _check_type(name: str, annotation: Any, value: Any) -> Any:
    """Check ``value`` against a field annotation such as ``"int"`` or ``"str | None"``."""
    base, _, rest = str(annotation).partition("|")
    base = base.strip()
    if value is None and rest.strip() == "None":
        return None
    expected = _TYPES[base]
    # bool is a subclass of int; "input_papers: true" is still a mistake.
    if not isinstance(value, expected) or (isinstance(value, bool) and base != "bool"):
        raise ValueError(f"{name} must be of type {base}, got {type(value).__name__} {value!r}")
    return float(value) if base == "float" else value
