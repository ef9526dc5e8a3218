"""
CompanyIntel — SEC EDGAR collector (filings registry)

Three EDGAR products:
    company_tickers.json       bulk CIK/ticker/name directory, used for search
    submissions/CIK##########  company profile + recent filings
    companyfacts/CIK########## XBRL facts, reduced to five annual series

EDGAR requires a descriptive User-Agent with a contact address on every request.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

from companyintel.collectors._fields import dig, pick_str, to_float
from companyintel.models import (
    Address,
    CompanyIdentity,
    Filing,
    FinancialSeries,
    Observation,
    SearchCandidate,
)

logger = structlog.get_logger()

TICKERS_URL = "https://www.sec.gov/files/company_tickers.json"
SUBMISSIONS_URL = "https://data.sec.gov/submissions/CIK{cik}.json"
COMPANY_FACTS_URL = "https://data.sec.gov/api/xbrl/companyfacts/CIK{cik}.json"

MAX_RECENT_FILINGS = 20
MAX_SERIES_YEARS = 5
ANNUAL_FORMS = ("10-K", "10-K/A")
MIN_ANNUAL_DAYS = 300

# Issuers switched revenue concepts over the years (ASC 606 in particular).
# Listed in priority order; the one with the most recent year is used.
REVENUE_CONCEPTS = (
    "RevenueFromContractWithCustomerExcludingAssessedTax",
    "RevenueFromContractWithCustomerIncludingAssessedTax",
    "Revenues",
    "SalesRevenueNet",
    "SalesRevenueGoodsNet",
)


def _headers(user_agent: str) -> Dict[str, str]:
    return {"User-Agent": user_agent, "Accept": "application/json"}


def normalize_cik(value: Any) -> Optional[str]:
    """Zero-pad a CIK to 10 digits. Returns None for anything non-numeric."""
    if value is None:
        return None
    text = str(value).strip()
    if not text.isdigit() or len(text) > 10:
        return None
    return text.zfill(10)


# ── Search ────────────────────────────────────────

async def fetch_ticker_directory(client: httpx.AsyncClient, user_agent: str) -> Optional[Dict[str, Any]]:
    """Download the bulk ticker directory. Returns None on failure."""
    try:
        resp = await client.get(TICKERS_URL, headers=_headers(user_agent))
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            logger.warning("sec_directory_malformed", type=type(data).__name__)
            return None
        return data
    except Exception as e:
        logger.warning("sec_directory_failed", error=str(e))
        return None


def search_directory(directory: Dict[str, Any], query: str, limit: int = 10) -> List[SearchCandidate]:
    """
    Match a free-text query against the ticker directory.
    Name matches are case-insensitive substrings; ticker matches must be exact.
    """
    q = query.strip().lower()
    if not q:
        return []

    results: List[SearchCandidate] = []
    for entry in directory.values():
        if not isinstance(entry, dict):
            continue
        title = str(entry.get("title") or "")
        ticker = str(entry.get("ticker") or "")
        if q in title.lower() or q == ticker.lower():
            cik = normalize_cik(entry.get("cik_str"))
            if cik is None:
                continue
            results.append(SearchCandidate(cik=cik, name=title, ticker=ticker))
            if len(results) >= limit:
                break
    return results


async def search_companies(
    query: str,
    client: httpx.AsyncClient,
    user_agent: str,
    limit: int = 10,
) -> List[SearchCandidate]:
    directory = await fetch_ticker_directory(client, user_agent)
    if directory is None:
        return []
    return search_directory(directory, query, limit=limit)


# ── Company profile ───────────────────────────────

def _address(raw: Any) -> Address:
    if not isinstance(raw, dict):
        return Address()
    return Address(
        street1=pick_str(raw, ("street1",)),
        street2=pick_str(raw, ("street2",)),
        city=pick_str(raw, ("city",)),
        state_or_country=pick_str(raw, ("stateOrCountry",)),
        zip_code=pick_str(raw, ("zipCode",)),
    )


def _recent_filings(recent: Dict[str, Any]) -> Tuple[Filing, ...]:
    forms = recent.get("form") or []
    dates = recent.get("filingDate") or []
    docs = recent.get("primaryDocument") or []
    descs = recent.get("primaryDocDescription") or []

    def at(seq, i):
        return str(seq[i] or "") if i < len(seq) else ""

    return tuple(
        Filing(
            form=at(forms, i),
            filing_date=at(dates, i),
            primary_document=at(docs, i),
            description=at(descs, i),
        )
        for i in range(min(len(forms), MAX_RECENT_FILINGS))
    )


def parse_submissions(data: Dict[str, Any], cik: str) -> CompanyIdentity:
    tickers = tuple(str(t) for t in (data.get("tickers") or []) if t)
    recent = dig(data, "filings", "recent") or {}
    addresses = data.get("addresses") or {}

    return CompanyIdentity(
        cik=cik,
        name=pick_str(data, ("name",)),
        ticker=tickers[0] if tickers else "",
        tickers=tickers,
        exchanges=tuple(str(e) for e in (data.get("exchanges") or []) if e),
        sic=pick_str(data, ("sic",)),
        sic_description=pick_str(data, ("sicDescription",)),
        state_of_incorporation=pick_str(data, ("stateOfIncorporation",)),
        fiscal_year_end=pick_str(data, ("fiscalYearEnd",)),
        ein=pick_str(data, ("ein",)),
        website=pick_str(data, ("website",)),
        business_address=_address(addresses.get("business")),
        mailing_address=_address(addresses.get("mailing")),
        recent_filings=_recent_filings(recent if isinstance(recent, dict) else {}),
    )


async def collect_company(cik: str, client: httpx.AsyncClient, user_agent: str) -> Optional[CompanyIdentity]:
    """Company profile and recent filings for a CIK."""
    padded = normalize_cik(cik)
    if padded is None:
        logger.warning("sec_invalid_cik", cik=cik)
        return None
    try:
        resp = await client.get(SUBMISSIONS_URL.format(cik=padded), headers=_headers(user_agent))
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            logger.warning("sec_submissions_malformed", cik=padded)
            return None
        return parse_submissions(data, padded)
    except Exception as e:
        logger.warning("sec_submissions_failed", cik=padded, error=str(e))
        return None


# ── Financial facts ───────────────────────────────

def _is_annual_period(entry: Dict[str, Any]) -> bool:
    """Duration facts must span roughly a year; instant facts (no start) always qualify."""
    start = entry.get("start")
    if not start:
        return True
    try:
        days = (date.fromisoformat(str(entry["end"])) - date.fromisoformat(str(start))).days
    except ValueError:
        return False
    return days >= MIN_ANNUAL_DAYS


def extract_annual_series(us_gaap: Dict[str, Any], concept: str, limit: int = MAX_SERIES_YEARS) -> Tuple[Observation, ...]:
    """
    Annual USD observations for one concept, newest first, one per calendar
    year of the period end. When a year was reported in several filings the
    latest filing wins.
    """
    entries = dig(us_gaap, concept, "units", "USD")
    if not isinstance(entries, list):
        return ()

    annual = [
        e for e in entries
        if isinstance(e, dict)
        and e.get("form") in ANNUAL_FORMS
        and e.get("fp", "FY") == "FY"
        and e.get("end")
        and e.get("val") is not None
        and _is_annual_period(e)
    ]
    annual.sort(key=lambda e: (str(e["end"]), str(e.get("filed") or "")), reverse=True)

    seen = set()
    series: List[Observation] = []
    for entry in annual:
        try:
            year = int(str(entry["end"])[:4])
        except ValueError:
            continue
        if year in seen:
            continue
        seen.add(year)
        series.append(Observation(period=str(entry["end"]), value=to_float(entry["val"]), year=year))
        if len(series) >= limit:
            break
    return tuple(series)


def select_revenue_series(us_gaap: Dict[str, Any]) -> Tuple[Observation, ...]:
    candidates = [extract_annual_series(us_gaap, c) for c in REVENUE_CONCEPTS]
    candidates = [c for c in candidates if c]
    if not candidates:
        return ()
    # max() keeps the first of equal keys, so ties go to the higher-priority concept
    return max(candidates, key=lambda s: s[0].year)


def parse_company_facts(data: Dict[str, Any]) -> FinancialSeries:
    us_gaap = dig(data, "facts", "us-gaap") or {}
    return FinancialSeries(
        revenue=select_revenue_series(us_gaap),
        net_income=extract_annual_series(us_gaap, "NetIncomeLoss"),
        total_assets=extract_annual_series(us_gaap, "Assets"),
        total_liabilities=extract_annual_series(us_gaap, "Liabilities"),
        shareholders_equity=extract_annual_series(us_gaap, "StockholdersEquity"),
    )


async def collect_financials(cik: str, client: httpx.AsyncClient, user_agent: str) -> Optional[FinancialSeries]:
    """Five-year annual series from XBRL company facts."""
    padded = normalize_cik(cik)
    if padded is None:
        logger.warning("sec_invalid_cik", cik=cik)
        return None
    try:
        resp = await client.get(COMPANY_FACTS_URL.format(cik=padded), headers=_headers(user_agent))
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            logger.warning("sec_facts_malformed", cik=padded)
            return None
        return parse_company_facts(data)
    except Exception as e:
        logger.warning("sec_facts_failed", cik=padded, error=str(e))
        return None
