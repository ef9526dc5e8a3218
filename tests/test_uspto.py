"""
Unit tests for the USPTO patent collector.
"""
import pytest

from companyintel.collectors import uspto

from conftest import USPTO, USPTO_LOOKUP, patent_assignments


class TestParseAssignments:

    def test_registry_total_exceeds_sample(self):
        summary = uspto.parse_assignments(patent_assignments())
        assert summary.total_patents == 42
        assert len(summary.patents) == 2
        assert summary.patents[0].inventors == ("J. Doe",)
        assert summary.patents[1].filing_date == ""
        assert summary.patent_status == "ok"

    def test_trademarks_always_unsupported(self):
        summary = uspto.parse_assignments(patent_assignments())
        assert summary.trademarks == ()
        assert summary.total_trademarks == 0
        assert summary.trademark_status == "unsupported"

    def test_alternate_shape(self):
        summary = uspto.parse_assignments({"patents": [{"title": "Widget", "patent_number": "US1"}]})
        assert summary.total_patents == 1
        assert summary.patents[0].title == "Widget"

    def test_sample_bounded(self):
        docs = [{"inventionTitle": f"P{i}"} for i in range(25)]
        summary = uspto.parse_assignments({"response": {"numFound": 25, "docs": docs}})
        assert len(summary.patents) == uspto.MAX_PATENTS
        assert summary.total_patents == 25


class TestCollectIP:

    @pytest.mark.asyncio
    async def test_success(self, router):
        router.add(USPTO, USPTO_LOOKUP, json=patent_assignments())
        async with router.client() as client:
            summary = await uspto.collect_ip("Acme United", client)
        assert summary.total_patents == 42
        params = router.requests[0].url.params
        assert params["query"] == "Acme United"
        assert params["filter"] == "OwnerName"

    @pytest.mark.asyncio
    async def test_unreachable_is_annotated_unsupported(self, router):
        router.fail(USPTO, USPTO_LOOKUP)
        async with router.client() as client:
            summary = await uspto.collect_ip("Acme United", client)
        assert summary is not None
        assert summary.patent_status == "unsupported"
        assert "requires authenticated access" in summary.note
        assert summary.patents == ()

    @pytest.mark.asyncio
    async def test_error_status_is_annotated_unsupported(self, router):
        router.add(USPTO, USPTO_LOOKUP, status=403, json={"error": "forbidden"})
        async with router.client() as client:
            summary = await uspto.collect_ip("Acme United", client)
        assert summary.patent_status == "unsupported"

    @pytest.mark.asyncio
    async def test_unparseable_payload(self, router):
        router.add(USPTO, USPTO_LOOKUP, json={"response": {"docs": "not-a-list"}, "patents": 7})
        async with router.client() as client:
            summary = await uspto.collect_ip("Acme United", client)
        assert summary.patents == ()
        assert summary.total_patents == 0
