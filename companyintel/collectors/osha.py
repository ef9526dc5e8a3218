"""
CompanyIntel — OSHA collector (workplace safety registry)

Inspections come from the DOL open-data inspection search. The registry has
shipped at least two schemas (snake_case enforcement fields and camelCase
API fields); every logical field is read through both spellings.

No fallback source exists: anything but a non-empty list is treated as unavailable.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog

from companyintel.collectors._fields import pick, pick_str, to_float, to_int
from companyintel.models import Inspection, SafetySummary

logger = structlog.get_logger()

SEARCH_URL = "https://data.dol.gov/get/inspection/search/{name}/limit/25/orderby/open_date/desc"

# logical field -> candidate source names, in priority order
FIELDS = {
    "activity_nr": ("activity_nr", "activityNr"),
    "establishment_name": ("estab_name", "establishment_name", "estabName"),
    "site": ("site_address", "siteAddress"),
    "city": ("site_city", "siteCity"),
    "state": ("site_state", "siteState"),
    "open_date": ("open_date", "openDate"),
    "close_date": ("close_case_date", "closeDate"),
    "inspection_type": ("insp_type", "inspType"),
    "total_penalty": ("total_current_penalty", "totalCurrentPenalty", "penalty"),
    "serious_violations": ("serious_violations", "nr_serious"),
    "willful_violations": ("willful_violations", "nr_willful"),
    "other_violations": ("other_violations", "nr_other"),
}


def parse_inspection(row: Dict[str, Any]) -> Inspection:
    return Inspection(
        activity_nr=pick_str(row, FIELDS["activity_nr"]),
        establishment_name=pick_str(row, FIELDS["establishment_name"]),
        site=pick_str(row, FIELDS["site"]),
        city=pick_str(row, FIELDS["city"]),
        state=pick_str(row, FIELDS["state"]),
        open_date=pick_str(row, FIELDS["open_date"]),
        close_date=pick_str(row, FIELDS["close_date"]),
        inspection_type=pick_str(row, FIELDS["inspection_type"]),
        total_penalty=to_float(pick(row, FIELDS["total_penalty"])),
        serious_violations=to_int(pick(row, FIELDS["serious_violations"])),
        willful_violations=to_int(pick(row, FIELDS["willful_violations"])),
        other_violations=to_int(pick(row, FIELDS["other_violations"])),
    )


def summarize(rows: List[Dict[str, Any]]) -> SafetySummary:
    """Totals are exact sums over the returned inspections."""
    inspections = tuple(parse_inspection(r) for r in rows if isinstance(r, dict))
    serious = sum(i.serious_violations for i in inspections)
    willful = sum(i.willful_violations for i in inspections)
    other = sum(i.other_violations for i in inspections)
    return SafetySummary(
        inspections=inspections,
        total_inspections=len(inspections),
        total_violations=serious + willful + other,
        total_penalties=sum(i.total_penalty for i in inspections),
        serious_violation_count=serious,
        willful_violation_count=willful,
    )


async def collect_safety(
    company_name: str,
    client: httpx.AsyncClient,
    api_key: str = "",
) -> Optional[SafetySummary]:
    """Most recent inspections for establishments matching the name."""
    headers = {"Accept": "application/json"}
    if api_key:
        headers["X-API-KEY"] = api_key

    try:
        resp = await client.get(SEARCH_URL.format(name=quote(company_name, safe="")), headers=headers)
        if resp.status_code != 200:
            logger.warning("osha_unavailable", company=company_name, status=resp.status_code)
            return None
        data = resp.json()
        if not isinstance(data, list) or not data:
            logger.info("osha_no_inspections", company=company_name)
            return None
        summary = summarize(data)
        return summary if summary.total_inspections else None
    except Exception as e:
        logger.warning("osha_failed", company=company_name, error=str(e))
        return None
