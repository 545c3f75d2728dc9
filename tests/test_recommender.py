"""Tests for the recommendation requester."""

from __future__ import annotations

import json

import httpx

from zotero_recommender import RecommendationRequester, RecommendedPaper
from zotero_recommender.recommender import RECOMMENDATION_FIELDS

SAMPLE_RESPONSE = {
    "recommendedPapers": [
        {
            "paperId": "rec1",
            "title": "First Recommendation",
            "authors": [{"authorId": "1", "name": "Ada Lovelace"}, {"authorId": "2", "name": "Alan Turing"}],
            "url": "https://www.semanticscholar.org/paper/rec1",
            "year": 2021,
            "abstract": "An abstract.",
            "citationCount": 12,
            "influentialCitationCount": 3,
        },
        {
            "paperId": "rec2",
            "title": "Second Recommendation",
            "authors": [],
            "url": "https://www.semanticscholar.org/paper/rec2",
            "year": None,
            "abstract": None,
            "citationCount": None,
            "influentialCitationCount": None,
        },
    ]
}


def ok_handler(request):
    return httpx.Response(200, json=SAMPLE_RESPONSE)


class TestRecommendedPaper:
    """Tests for RecommendedPaper parsing and serialization."""

    def test_from_api(self):
        paper = RecommendedPaper.from_api(SAMPLE_RESPONSE["recommendedPapers"][0])

        assert paper.paper_id == "rec1"
        assert paper.title == "First Recommendation"
        assert paper.authors == ("Ada Lovelace", "Alan Turing")
        assert paper.year == 2021
        assert paper.citation_count == 12
        assert paper.influential_citation_count == 3

    def test_from_api_missing_values(self):
        paper = RecommendedPaper.from_api(SAMPLE_RESPONSE["recommendedPapers"][1])

        assert paper.authors == ()
        assert paper.year is None
        assert paper.abstract is None
        assert paper.citation_count == 0
        assert paper.influential_citation_count == 0

    def test_to_dict_uses_api_field_names(self):
        paper = RecommendedPaper.from_api(SAMPLE_RESPONSE["recommendedPapers"][0])
        data = paper.to_dict()

        assert data["authors"] == [{"name": "Ada Lovelace"}, {"name": "Alan Turing"}]
        assert data["citationCount"] == 12
        assert data["influentialCitationCount"] == 3
        assert data["paperId"] == "rec1"


class TestRecommendationRequester:
    """Tests for RecommendationRequester.request."""

    def test_request_shape(self, mock_http, logger):
        http, requests = mock_http(ok_handler)

        papers = RecommendationRequester(http, logger=logger).request(["id1", "id2"], limit=10, max_input=100)

        assert [p.title for p in papers] == ["First Recommendation", "Second Recommendation"]
        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/recommendations/v1/papers/"
        assert request.url.params["fields"] == RECOMMENDATION_FIELDS
        assert request.url.params["limit"] == "10"
        assert json.loads(request.content) == {"positivePaperIds": ["id1", "id2"]}

    def test_truncates_to_first_max_input(self, mock_http, logger, caplog):
        http, requests = mock_http(ok_handler)
        paper_ids = [f"id{i}" for i in range(7)]

        with caplog.at_level("WARNING", logger="test"):
            RecommendationRequester(http, logger=logger).request(paper_ids, limit=5, max_input=3)

        assert json.loads(requests[0].content)["positivePaperIds"] == ["id0", "id1", "id2"]
        assert "first 3 of 7" in caplog.text

    def test_no_truncation_at_limit(self, mock_http, logger):
        http, requests = mock_http(ok_handler)
        paper_ids = [f"id{i}" for i in range(3)]

        RecommendationRequester(http, logger=logger).request(paper_ids, limit=5, max_input=3)

        assert json.loads(requests[0].content)["positivePaperIds"] == paper_ids

    def test_preserves_provider_order(self, mock_http, logger):
        reversed_response = {"recommendedPapers": list(reversed(SAMPLE_RESPONSE["recommendedPapers"]))}
        http, _ = mock_http(lambda request: httpx.Response(200, json=reversed_response))

        papers = RecommendationRequester(http, logger=logger).request(["id1"], limit=10)

        assert [p.paper_id for p in papers] == ["rec2", "rec1"]

    def test_http_error_yields_empty(self, mock_http, logger, caplog):
        http, _ = mock_http(lambda request: httpx.Response(400, json={"error": "Unacceptable query params"}))

        with caplog.at_level("ERROR", logger="test"):
            papers = RecommendationRequester(http, logger=logger).request(["id1"], limit=10)

        assert papers == []
        assert "Unacceptable query params" in caplog.text

    def test_network_error_yields_empty(self, mock_http, logger):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        http, _ = mock_http(handler)
        assert RecommendationRequester(http, logger=logger).request(["id1"], limit=10) == []

    def test_malformed_body_yields_empty(self, mock_http, logger):
        http, _ = mock_http(lambda request: httpx.Response(200, json={"unexpected": True}))
        assert RecommendationRequester(http, logger=logger).request(["id1"], limit=10) == []

    def test_empty_ids_skip_request(self, mock_http, logger):
        http, requests = mock_http(ok_handler)
        assert RecommendationRequester(http, logger=logger).request([], limit=10) == []
        assert requests == []
