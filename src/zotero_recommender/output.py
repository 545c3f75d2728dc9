"""Renderings of recommendation results shared by the terminal UI and plain output."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TextIO

from rich.markup import escape as escape_markup

from zotero_recommender.recommender import RecommendedPaper

LISTING_INDENT = "     "


def format_authors(paper: RecommendedPaper) -> str:
    return ", ".join(paper.authors) or "Unknown authors"


def format_paper_details(paper: RecommendedPaper, markup: bool = False) -> str:
    """Title, authors, year, citation counts and abstract, one per line.

    With ``markup`` the result is Rich console markup for the Textual detail
    pane: API text is escaped and the title is bold.
    """

    def text(value: str) -> str:
        return escape_markup(value) if markup else value

    title = text(paper.title)
    lines = [
        f"[b]{title}[/b]" if markup else title,
        text(format_authors(paper)),
        str(paper.year) if paper.year is not None else "Year unknown",
        f"Citations: {paper.citation_count}, Influential: {paper.influential_citation_count}",
        "",
        text(paper.abstract or "No abstract available."),
    ]
    return "\n".join(lines)


def render_json(papers: Sequence[RecommendedPaper]) -> str:
    return json.dumps([p.to_dict() for p in papers], indent=2, ensure_ascii=False)


def print_listing(papers: Sequence[RecommendedPaper], out: TextIO) -> None:
    """Print a numbered listing of the recommendations with their details."""
    print("=" * 60, file=out)
    print(f"RECOMMENDATIONS ({len(papers)})", file=out)
    print("=" * 60, file=out)
    for i, paper in enumerate(papers, 1):
        first, *rest = format_paper_details(paper).split("\n")
        print(f"\n{i:>3}. {first}", file=out)
        for line in rest:
            print(f"{LISTING_INDENT}{line}" if line else "", file=out)
        if paper.url:
            print(f"{LISTING_INDENT}{paper.url}", file=out)
