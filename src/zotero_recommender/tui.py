"""Textual terminal UI: the recommendation browser and the collection picker."""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Sequence

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Footer, Label, ListItem, ListView, Static

from zotero_recommender.output import format_paper_details
from zotero_recommender.recommender import RecommendedPaper

logger = logging.getLogger(__name__)

DARK_THEME = "textual-dark"
LIGHT_THEME = "textual-light"


class PaperItem(ListItem):
    def __init__(self, paper: RecommendedPaper) -> None:
        super().__init__(Label(paper.title or "(untitled)", markup=False))
        self.paper = paper


class RecommendationBrowser(App[None]):
    """List of recommended titles with a detail pane for the highlighted paper.

    Enter opens the paper in the web browser.
    """

    TITLE = "Semantic Scholar Recommendations"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
    ]

    CSS = """
    #papers {
        width: 30%;
        height: 100%;
    }

    #details-scroll {
        width: 70%;
        height: 100%;
        border: round $accent;
        padding: 0 1;
    }
    """

    def __init__(self, papers: Sequence[RecommendedPaper], light: bool = False) -> None:
        super().__init__()
        self.papers = list(papers)
        self.light = light

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield ListView(*(PaperItem(p) for p in self.papers), id="papers")
            with VerticalScroll(id="details-scroll"):
                yield Static("", id="details")
        yield Footer()

    def on_mount(self) -> None:
        self.theme = LIGHT_THEME if self.light else DARK_THEME
        list_view = self.query_one("#papers", ListView)
        if self.papers:
            list_view.index = 0
            self.show_details(self.papers[0])
        list_view.focus()

    def show_details(self, paper: RecommendedPaper) -> None:
        self.query_one("#details", Static).update(format_paper_details(paper, markup=True))

    @on(ListView.Highlighted, "#papers")
    def on_paper_highlighted(self, event: ListView.Highlighted) -> None:
        if isinstance(event.item, PaperItem):
            self.show_details(event.item.paper)

    @on(ListView.Selected, "#papers")
    def on_paper_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, PaperItem):
            self.open_url(event.item.paper.url)

    def open_url(self, url: str) -> bool:
        """Open a URL in the browser with error handling. Returns True on success."""
        if not url:
            self.notify("This paper has no URL", severity="warning")
            return False
        try:
            webbrowser.open(url)
            return True
        except (webbrowser.Error, OSError) as e:
            logger.warning("Failed to open browser for %s: %s", url, e)
            self.notify(f"Could not open {url}", severity="error")
            return False


class CollectionLine(ListItem):
    def __init__(self, line: str) -> None:
        super().__init__(Label(line, markup=False))
        self.line = line

    @property
    def collection_name(self) -> str:
        return self.line.strip()


class CollectionPicker(App[str]):
    """Pick a collection from the indented tree; returns its name, or None on quit."""

    TITLE = "Select a Zotero collection"

    BINDINGS = [
        Binding("q", "cancel", "Quit"),
        Binding("escape", "cancel", "Quit", show=False),
    ]

    def __init__(self, lines: Sequence[str], light: bool = False) -> None:
        super().__init__()
        self.lines = list(lines)
        self.light = light

    def compose(self) -> ComposeResult:
        yield ListView(*(CollectionLine(line) for line in self.lines), id="collections")
        yield Footer()

    def on_mount(self) -> None:
        self.theme = LIGHT_THEME if self.light else DARK_THEME
        self.query_one("#collections", ListView).focus()

    @on(ListView.Selected, "#collections")
    def on_collection_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, CollectionLine):
            self.exit(event.item.collection_name)

    def action_cancel(self) -> None:
        self.exit(None)


def browse_recommendations(papers: Sequence[RecommendedPaper], light: bool = False) -> None:
    RecommendationBrowser(papers, light=light).run()


def pick_collection(lines: Sequence[str], light: bool = False) -> str | None:
    return CollectionPicker(lines, light=light).run()
