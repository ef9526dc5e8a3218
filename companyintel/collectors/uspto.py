"""
CompanyIntel — USPTO collector (intellectual property registry)

Patents come from the public assignment lookup filtered by owner name. The
full-text patent search needs an API key and no public trademark endpoint
exists, so both are reported as unsupported rather than as empty results.
"""
from typing import Any, Dict, Optional

import httpx
import structlog

from companyintel.collectors._fields import dig, pick_str, to_int
from companyintel.models import IPSummary, Patent

logger = structlog.get_logger()

ASSIGNMENT_URL = "https://assignment-api.uspto.gov/patent/lookup"

MAX_PATENTS = 10

NOTE_ASSIGNMENTS = (
    "Patent data from USPTO assignment records. "
    "Trademark search is an unsupported data source (requires authenticated access)."
)
NOTE_UNSUPPORTED = (
    "Unsupported data source: patent search requires authenticated access. "
    "Trademark search is an unsupported data source (requires authenticated access)."
)


def parse_patent(doc: Dict[str, Any]) -> Patent:
    inventors = doc.get("inventors")
    return Patent(
        title=pick_str(doc, ("inventionTitle", "title")),
        patent_number=pick_str(doc, ("patentNumber", "patent_number")),
        filing_date=pick_str(doc, ("filingDate",)),
        grant_date=pick_str(doc, ("grantDate", "executionDate")),
        inventors=tuple(str(i) for i in inventors) if isinstance(inventors, list) else (),
    )


def parse_assignments(data: Dict[str, Any]) -> IPSummary:
    docs = dig(data, "response", "docs")
    if not isinstance(docs, list):
        docs = data.get("patents") if isinstance(data.get("patents"), list) else []
    patents = tuple(parse_patent(d) for d in docs[:MAX_PATENTS] if isinstance(d, dict))
    total = to_int(dig(data, "response", "numFound"), default=len(patents)) or len(patents)
    return IPSummary(patents=patents, total_patents=total, note=NOTE_ASSIGNMENTS)


def unsupported() -> IPSummary:
    return IPSummary(patent_status="unsupported", note=NOTE_UNSUPPORTED)


async def collect_ip(company_name: str, client: httpx.AsyncClient) -> Optional[IPSummary]:
    """Patent assignments owned by the company. Trademarks are always unsupported."""
    try:
        resp = await client.get(
            ASSIGNMENT_URL,
            params={"query": company_name, "filter": "OwnerName", "rows": str(MAX_PATENTS), "start": "0"},
            headers={"Accept": "application/json"},
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("assignment lookup returned a non-object payload")
    except Exception as e:
        logger.warning("uspto_assignment_unreachable", company=company_name, error=str(e))
        return unsupported()

    try:
        return parse_assignments(data)
    except Exception as e:
        logger.warning("uspto_parse_failed", company=company_name, error=str(e))
        return None
