"""
Unit tests for the OSHA inspection collector.

The registry has shipped two field-naming schemas; both must parse to the
same canonical inspection.
"""
import pytest

from companyintel.collectors import osha

from conftest import DOL, DOL_SEARCH, inspections


class TestParseInspection:

    def test_snake_case_schema(self):
        inspection = osha.parse_inspection(inspections()[0])
        assert inspection.activity_nr == "1234567"
        assert inspection.establishment_name == "ACME UNITED CORP"
        assert inspection.close_date == "2023-06-01"
        assert inspection.total_penalty == 12500.0
        assert inspection.serious_violations == 2
        assert inspection.other_violations == 1

    def test_camel_case_schema(self):
        inspection = osha.parse_inspection(inspections()[1])
        assert inspection.activity_nr == "7654321"
        assert inspection.establishment_name == "ACME UNITED"
        assert inspection.city == "Fremont"
        assert inspection.inspection_type == "Complaint"
        assert inspection.total_penalty == 3000.0
        assert inspection.serious_violations == 1
        assert inspection.willful_violations == 0

    def test_priority_order(self):
        row = {"estab_name": "FIRST", "estabName": "SECOND", "total_current_penalty": "", "penalty": "75"}
        inspection = osha.parse_inspection(row)
        assert inspection.establishment_name == "FIRST"
        assert inspection.total_penalty == 75.0


class TestSummarize:
    """Totals are exact sums over the returned inspections."""

    def test_sums(self):
        summary = osha.summarize(inspections())
        assert summary.total_inspections == 2
        assert summary.serious_violation_count == 3
        assert summary.willful_violation_count == 0
        assert summary.total_violations == 4
        assert summary.total_penalties == 15500.0

    def test_ignores_non_objects(self):
        assert osha.summarize(["junk", None]).total_inspections == 0


class TestCollectSafety:

    @pytest.mark.asyncio
    async def test_success(self, router):
        router.add(DOL, DOL_SEARCH, json=inspections(), prefix=True)
        async with router.client() as client:
            summary = await osha.collect_safety("Acme United & Sons", client, api_key="k-123")

        assert summary.total_inspections == 2
        request = router.requests[0]
        assert request.headers["X-API-KEY"] == "k-123"
        assert "Acme%20United%20%26%20Sons" in str(request.url)
        assert str(request.url).endswith("/limit/25/orderby/open_date/desc")

    @pytest.mark.asyncio
    async def test_no_api_key_header_when_unset(self, router):
        router.add(DOL, DOL_SEARCH, json=inspections(), prefix=True)
        async with router.client() as client:
            await osha.collect_safety("Acme", client)
        assert "X-API-KEY" not in router.requests[0].headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,payload", [
        (401, {"error": "API key required"}),
        (200, []),
        (200, {"results": []}),
        (200, [None, "junk"]),
    ])
    async def test_unavailable(self, router, status, payload):
        router.add(DOL, DOL_SEARCH, json=payload, status=status, prefix=True)
        async with router.client() as client:
            assert await osha.collect_safety("Acme", client) is None

    @pytest.mark.asyncio
    async def test_connection_error(self, router):
        router.fail(DOL, DOL_SEARCH, prefix=True)
        async with router.client() as client:
            assert await osha.collect_safety("Acme", client) is None
