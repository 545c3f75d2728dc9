"""zotero-recommend: Semantic Scholar recommendations for a Zotero library.

This command:
1. Reads the titles of your Zotero items (optionally from one collection)
2. Resolves each title to a Semantic Scholar paper ID, caching the result
3. Requests recommendations for the resolved papers and shows them

Usage:
    zotero-recommend                              # Pick a collection interactively
    zotero-recommend --collection "Soundscapes"   # Recommend for one collection
    zotero-recommend --all --json                 # Whole library, JSON on stdout
    zotero-recommend --force-update               # Retry titles with no match

Environment variables:
    S2_API_KEY - Semantic Scholar API key (optional; public rate limits apply without it)
"""

from __future__ import annotations

import argparse
import locale
import logging
import sys
from collections.abc import Sequence
from typing import Any

from tqdm import tqdm

from zotero_recommender._version import __version__
from zotero_recommender.cache import PaperIdCache
from zotero_recommender.config import RecommenderConfig
from zotero_recommender.exceptions import (
    CacheCorruptError,
    EmptyResolutionError,
    ZoteroDatabaseError,
)
from zotero_recommender.output import print_listing, render_json
from zotero_recommender.recommender import RecommendationRequester, RecommendedPaper
from zotero_recommender.resolver import IdentifierResolver, Progress, ResolutionStats, resolve_all
from zotero_recommender.utils import USER_AGENT, HttpClient, RateLimiter
from zotero_recommender.zotero import ZoteroDatabase, flatten_collections

# ------------- Pipeline -------------


class RecommendationPipeline:
    """Titles -> paper IDs -> recommendations, for one configuration."""

    def __init__(
        self,
        config: RecommenderConfig,
        cache: PaperIdCache,
        resolver: IdentifierResolver,
        requester: RecommendationRequester,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.resolver = resolver
        self.requester = requester
        self.logger = logger or logging.getLogger(__name__)
        self.stats = ResolutionStats()

    def resolve(self, titles: Sequence[str], progress: Progress | None = None) -> list[str]:
        self.logger.info("Searching for %d papers in Semantic Scholar.", len(titles))
        paper_ids = resolve_all(
            titles,
            self.cache,
            self.resolver,
            force_update=self.config.force_update,
            progress=progress,
            stats=self.stats,
        )
        self.logger.info(
            "Resolved %d of %d title(s) (%d lookup(s), %d from cache).",
            self.stats.resolved,
            self.stats.titles,
            self.stats.lookups,
            self.stats.cache_hits,
        )
        return paper_ids

    def run(self, titles: Sequence[str], progress: Progress | None = None) -> list[RecommendedPaper]:
        """Resolve ``titles`` and request recommendations for the matches.

        Raises:
            EmptyResolutionError: If no title resolved; no request is made.
        """
        paper_ids = self.resolve(titles, progress=progress)
        if not paper_ids:
            raise EmptyResolutionError(len(titles))
        return self.requester.request(paper_ids, self.config.result_limit, self.config.input_papers)


# ------------- CLI -------------


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zotero-recommend",
        description="Recommend papers from Semantic Scholar based on your Zotero library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Choose a collection in the terminal UI
  zotero-recommend

  # Recommend for a collection, without its subcollections
  zotero-recommend --collection "Soundscapes" --no-include-subcollections

  # Machine-readable output for the whole library
  zotero-recommend --all --json > recommendations.json

Environment Variables:
  S2_API_KEY   Semantic Scholar API key
""",
    )
    # Defaults are None so that values from --config are only overridden
    # by flags that were actually given.
    sources = parser.add_argument_group("Zotero")
    sources.add_argument("--zotero-db-path", help="Path to the Zotero database (usually zotero.sqlite)")
    sources.add_argument("--collection", help="Name of a collection")
    sources.add_argument(
        "--include-subcollections",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include direct subcollections of the collection (default: on)",
    )
    sources.add_argument(
        "--all",
        dest="pick_collection",
        action="store_false",
        default=None,
        help="Use the whole library instead of picking a collection",
    )

    s2 = parser.add_argument_group("Semantic Scholar")
    s2.add_argument("--cache-path", help="Directory of the paper ID cache")
    s2.add_argument("--s2-api-key", help="Semantic Scholar API key (or set S2_API_KEY)")
    s2.add_argument("--result-limit", type=int, help="Number of recommendations to return (default: 10)")
    s2.add_argument(
        "--input-papers",
        type=int,
        help="Maximum number of input papers (Semantic Scholar allows at most 100). "
        "With more matches, the first N are used (default: 100)",
    )
    s2.add_argument(
        "--force-update",
        action="store_true",
        default=None,
        help="Search again for titles that previously had no match in Semantic Scholar",
    )
    s2.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default: 20)")
    s2.add_argument("--rate-limit", type=int, help="Maximum requests per minute (default: 100)")

    output = parser.add_argument_group("Output")
    output.add_argument("--json", dest="json_output", action="store_true", default=None, help="Output JSON")
    output.add_argument(
        "--plain", dest="plain_output", action="store_true", default=None, help="Print a listing instead of the UI"
    )
    output.add_argument("--light", action="store_true", default=None, help="Use the light theme")

    parser.add_argument("--config", help="YAML file with default settings")
    parser.add_argument("--verbose", "-v", action="store_true", default=None, help="Verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config_file(path: str) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Config dictionary (empty for an empty file)

    Raises:
        ValueError: If the file is not valid YAML or not a mapping
    """
    import yaml

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    # Accept the CLI spelling of keys (zotero-db-path) as well.
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def build_config(args: argparse.Namespace) -> RecommenderConfig:
    """Merge built-in defaults, the optional YAML file and command-line flags."""
    values: dict[str, Any] = load_config_file(args.config) if args.config else {}
    for key, value in vars(args).items():
        if key != "config" and value is not None:
            values[key] = value
    return RecommenderConfig.from_dict(values)


def init_logging(verbose: bool, quiet: bool = False) -> logging.Logger:
    if quiet:
        level = logging.CRITICAL
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr, force=True)
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logging.getLogger("zotero_recommender")


def setup_http_client(config: RecommenderConfig) -> HttpClient:
    """Create the HTTP client with rate limiting.

    Args:
        config: Run configuration.

    Returns:
        Configured HttpClient instance.
    """
    return HttpClient(
        timeout=config.timeout,
        user_agent=USER_AGENT,
        rate_limiter=RateLimiter(config.rate_limit),
        s2_api_key=config.s2_api_key,
    )


def choose_collection(config: RecommenderConfig, db: ZoteroDatabase) -> str | None:
    """Show the collection picker. Returns None when the user quits."""
    from zotero_recommender.tui import pick_collection

    lines = flatten_collections(db.fetch_collections())
    if not lines:
        return ""
    return pick_collection(lines, light=config.light)


def stdout_is_terminal() -> bool:
    """True when the Textual UI can draw to stdout (not redirected)."""
    return sys.stdout.isatty()


def present(papers: list[RecommendedPaper], config: RecommenderConfig) -> None:
    if config.json_output:
        print(render_json(papers))
    elif config.plain_output or not stdout_is_terminal():
        print_listing(papers, sys.stdout)
    else:
        from zotero_recommender.tui import browse_recommendations

        browse_recommendations(papers, light=config.light)


def _set_collation_locale(logger: logging.Logger) -> None:
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.debug("Using default collation: %s", e)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code: 0=success (including "nothing to recommend"), 1=error.
    """
    args = build_arg_parser().parse_args(argv)
    try:
        config = build_config(args)
    except (OSError, ValueError, TypeError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1
    logger = init_logging(config.verbose, quiet=config.quiet)

    validation_error = config.validate()
    if validation_error:
        logger.error(validation_error)
        return 1

    _set_collation_locale(logger)
    db = ZoteroDatabase(config.zotero_db_path)

    try:
        # Load the cache first: a corrupt cache must stop the run before any work.
        cache = PaperIdCache.load(config.cache_file)

        if (
            config.collection is None
            and config.pick_collection
            and not config.json_output
            and stdout_is_terminal()
        ):
            picked = choose_collection(config, db)
            if picked is None:
                return 0
            config = config.with_collection(picked or None)

        titles = db.fetch_titles(config.collection, config.include_subcollections)
    except (CacheCorruptError, ZoteroDatabaseError) as e:
        logger.error("%s", e)
        return 1

    if config.collection:
        logger.info("Using collection %r (subcollections: %s)", config.collection, config.include_subcollections)

    with setup_http_client(config) as http:
        pipeline = RecommendationPipeline(
            config,
            cache,
            IdentifierResolver(http, logger=logger),
            RecommendationRequester(http, logger=logger),
            logger=logger,
        )
        with tqdm(total=len(titles), unit="paper", disable=config.quiet, file=sys.stderr) as bar:
            try:
                papers = pipeline.run(titles, progress=bar)
            except EmptyResolutionError as e:
                bar.close()
                logger.info("%s", e)
                if config.json_output:
                    print(render_json([]))
                return 0

    if not papers:
        logger.warning("No recommendations available.")
    present(papers, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
