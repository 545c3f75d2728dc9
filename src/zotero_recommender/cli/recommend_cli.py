#!/usr/bin/env python3
"""CLI entry point for zotero-recommend command.

Recommends Semantic Scholar papers for a Zotero library or collection.
"""

import sys


def main() -> None:
    """Entry point for zotero-recommend command."""
    from zotero_recommender.recommend import main as recommend_main

    sys.exit(recommend_main())


if __name__ == "__main__":
    main()
