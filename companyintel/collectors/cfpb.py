"""
CompanyIntel — CFPB collector (consumer complaint registry)

Two-step lookup:
    1. _suggest_company typeahead → the registry's canonical company name
    2. complaint search filtered by that name, with aggregations

If the filtered search fails, one retry runs as a broad free-text search.
Response and dispute rates only count buckets with a definite Yes/No answer.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

from companyintel.collectors._fields import dig, pick_str, round_half_up, to_int
from companyintel.models import Bucket, Complaint, ComplaintSummary, YearCount

logger = structlog.get_logger()

BASE_URL = "https://www.consumerfinance.gov/data-research/consumer-complaints/search/api/v1/"
SUGGEST_URL = BASE_URL + "_suggest_company"

_HEADERS = {"Accept": "application/json"}
_PAGE_SIZE = "25"
MAX_BUCKETS = 10
MAX_RECENT = 10
MAX_YEARS = 5
_DEFINITE = ("yes", "no")


# ── Name resolution ───────────────────────────────

def best_suggestion(query: str, suggestions: List[str]) -> Optional[str]:
    """First suggestion contained in, or containing, the query; else the first suggestion."""
    if not suggestions:
        return None
    q = query.lower()
    for s in suggestions:
        sl = s.lower()
        if q in sl or sl in q:
            return s
    return suggestions[0]


async def resolve_company_name(company_name: str, client: httpx.AsyncClient) -> str:
    """Map free text onto the registry's company name. Falls back to the input."""
    try:
        resp = await client.get(
            SUGGEST_URL,
            params={"text": company_name, "size": "5"},
            headers=_HEADERS,
        )
        resp.raise_for_status()
        data = resp.json()
    except Exception as e:
        logger.info("cfpb_suggest_failed", company=company_name, error=str(e))
        return company_name

    suggestions = [str(s) for s in data if s] if isinstance(data, list) else []
    match = best_suggestion(company_name, suggestions)
    if match and match != company_name:
        logger.debug("cfpb_company_resolved", query=company_name, resolved=match)
    return match or company_name


# ── Response parsing ──────────────────────────────

def _buckets(aggs: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    buckets = dig(aggs, name, name, "buckets")
    return [b for b in buckets if isinstance(b, dict)] if isinstance(buckets, list) else []


def _top(aggs: Dict[str, Any], name: str) -> Tuple[Bucket, ...]:
    return tuple(
        Bucket(name=str(b.get("key", "")), count=to_int(b.get("doc_count")))
        for b in _buckets(aggs, name)[:MAX_BUCKETS]
    )


def yes_rate(buckets: List[Dict[str, Any]]) -> float:
    """Percentage of Yes among Yes+No buckets, one decimal. N/A and unknown buckets are ignored."""
    yes = 0
    definite = 0
    for b in buckets:
        key = str(b.get("key", "")).strip().lower()
        if key not in _DEFINITE:
            continue
        count = to_int(b.get("doc_count"))
        definite += count
        if key == "yes":
            yes += count
    if definite == 0:
        return 0.0
    return round_half_up(yes / definite * 100, 1)


def _bucket_year(bucket: Dict[str, Any]) -> Optional[int]:
    text = bucket.get("key_as_string")
    if text:
        try:
            return int(str(text)[:4])
        except ValueError:
            return None
    key = bucket.get("key")
    if isinstance(key, (int, float)):
        # epoch milliseconds
        return datetime.fromtimestamp(key / 1000, tz=timezone.utc).year
    return None


def _by_year(aggs: Dict[str, Any]) -> Tuple[YearCount, ...]:
    years = []
    for b in _buckets(aggs, "date_received_min"):
        year = _bucket_year(b)
        if year is not None:
            years.append(YearCount(year=year, count=to_int(b.get("doc_count"))))
    years.sort(key=lambda y: y.year, reverse=True)
    return tuple(years[:MAX_YEARS])


def _total(hits: Dict[str, Any]) -> int:
    raw = hits.get("total")
    if isinstance(raw, dict):
        return to_int(raw.get("value"))
    return to_int(raw)


def parse_complaints(data: Dict[str, Any], company_name: str) -> ComplaintSummary:
    hits = data.get("hits") if isinstance(data.get("hits"), dict) else {}
    aggs = data.get("aggregations") if isinstance(data.get("aggregations"), dict) else {}
    docs = [h for h in (hits.get("hits") or []) if isinstance(h, dict)]

    recent = []
    for hit in docs[:MAX_RECENT]:
        src = hit.get("_source")
        if not isinstance(src, dict):
            continue
        recent.append(Complaint(
            date=pick_str(src, ("date_received",)),
            product=pick_str(src, ("product",)),
            issue=pick_str(src, ("issue",)),
            company_response=pick_str(src, ("company_response",)),
            timely=src.get("timely") == "Yes",
        ))

    return ComplaintSummary(
        company_name=company_name,
        total_complaints=_total(hits),
        products=_top(aggs, "product"),
        issues=_top(aggs, "issue"),
        timely_response_rate=yes_rate(_buckets(aggs, "timely")),
        disputed_rate=yes_rate(_buckets(aggs, "consumer_disputed")),
        recent_complaints=tuple(recent),
        complaints_by_year=_by_year(aggs),
    )


# ── Collector ─────────────────────────────────────

async def _search(client: httpx.AsyncClient, **filters: str) -> Dict[str, Any]:
    params = {
        **filters,
        "size": _PAGE_SIZE,
        "sort": "created_date_desc",
        "no_aggs": "false",
    }
    resp = await client.get(BASE_URL, params=params, headers=_HEADERS)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("complaint search returned a non-object payload")
    return data


def _found(summary: ComplaintSummary) -> Optional[ComplaintSummary]:
    if summary.total_complaints == 0 and not summary.recent_complaints:
        logger.info("cfpb_no_complaints", company=summary.company_name)
        return None
    return summary


async def collect_complaints(company_name: str, client: httpx.AsyncClient) -> Optional[ComplaintSummary]:
    """Complaint volume, top products/issues and response behaviour for a company. None when there are none."""
    exact_name = await resolve_company_name(company_name, client)

    try:
        data = await _search(client, company=exact_name)
        return _found(parse_complaints(data, exact_name))
    except Exception as e:
        logger.info("cfpb_company_search_failed", company=exact_name, error=str(e))

    try:
        data = await _search(client, search_term=company_name)
        return _found(parse_complaints(data, company_name))
    except Exception as e:
        logger.warning("cfpb_failed", company=company_name, error=str(e))
        return None
