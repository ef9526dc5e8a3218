"""
CompanyIntel — EPA ECHO collector (environmental compliance registry)

Two-phase query:
    1. get_facilities?p_fn=<name>  → QueryID, row count, aggregate violation/penalty totals
    2. get_qid?qid=<QueryID>       → facility detail rows (first page)

Violation and penalty totals come from the phase-one aggregates, not from the
facility sample, which is capped at 20 rows.
"""
from typing import Any, Dict, Optional, Tuple

import httpx
import structlog

from companyintel.collectors._fields import dig, pick_str, round_half_up, to_float, to_int
from companyintel.models import EnvironmentalSummary, Facility

logger = structlog.get_logger()

FACILITIES_URL = "https://echodata.epa.gov/echo/echo_rest_services.get_facilities"
QID_URL = "https://echodata.epa.gov/echo/echo_rest_services.get_qid"

MAX_FACILITIES = 20


def facility_programs(row: Dict[str, Any]) -> Tuple[str, ...]:
    """Statutes the facility is tracked under, from per-program status fields and flags."""
    programs = []
    if row.get("AIRFlag") == "Y" or row.get("CAAComplianceStatus"):
        programs.append("Clean Air Act")
    if row.get("CWAComplianceStatus"):
        programs.append("Clean Water Act")
    if row.get("RCRAComplianceStatus"):
        programs.append("RCRA")
    if row.get("SDWAComplianceStatus"):
        programs.append("Safe Drinking Water")
    if row.get("TRIFlag") == "Y":
        programs.append("TRI")
    return tuple(programs)


def parse_facility(row: Dict[str, Any]) -> Facility:
    return Facility(
        name=pick_str(row, ("FacName",)),
        registry_id=pick_str(row, ("RegistryID",)),
        address=pick_str(row, ("FacStreet",)),
        city=pick_str(row, ("FacCity",)),
        state=pick_str(row, ("FacState",)),
        compliance_status=pick_str(row, ("FacComplianceStatus",), default="Unknown"),
        last_inspection=pick_str(row, ("FacDateLastInspection",), default="N/A"),
        inspection_count=to_int(row.get("FacInspectionCount")),
        penalties=to_float(row.get("CAAPenalties")),
        programs=facility_programs(row),
        snc_flag=pick_str(row, ("FacSNCFlg",), default="N").upper() == "Y",
    )


def compliance_rate(total_facilities: int, snc_facilities: int) -> int:
    """Share of facilities not in significant noncompliance, as a whole percentage."""
    if total_facilities <= 0:
        return 100
    return int(round_half_up((total_facilities - snc_facilities) / total_facilities * 100))


def summarize(search_results: Dict[str, Any], facility_rows: list) -> EnvironmentalSummary:
    total = to_int(search_results.get("QueryRows"))
    snc = to_int(search_results.get("SVRows"))
    lesser = to_int(search_results.get("CVRows"))
    facilities = tuple(
        parse_facility(row) for row in facility_rows[:MAX_FACILITIES] if isinstance(row, dict)
    )
    return EnvironmentalSummary(
        facilities=facilities,
        total_facilities=total,
        total_violations=snc + lesser,
        total_penalties=to_float(search_results.get("TotalPenalties")),
        compliance_rate=compliance_rate(total, snc),
    )


async def collect_environmental(company_name: str, client: httpx.AsyncClient) -> Optional[EnvironmentalSummary]:
    """Facility compliance picture for every ECHO facility matching the name."""
    try:
        resp = await client.get(FACILITIES_URL, params={"output": "JSON", "p_fn": company_name})
        resp.raise_for_status()
        payload = resp.json()
        results = payload.get("Results") if isinstance(payload, dict) else None
        if not isinstance(results, dict):
            logger.warning("epa_search_malformed", company=company_name)
            return None

        query_id = results.get("QueryID")
        if not query_id or to_int(results.get("QueryRows")) == 0:
            logger.info("epa_no_facilities", company=company_name)
            return EnvironmentalSummary()

        resp = await client.get(QID_URL, params={"output": "JSON", "qid": str(query_id), "pageno": "1"})
        resp.raise_for_status()
        detail = resp.json()
        rows = dig(detail, "Results", "Facilities")
        return summarize(results, rows if isinstance(rows, list) else [])

    except Exception as e:
        logger.warning("epa_failed", company=company_name, error=str(e))
        return None
