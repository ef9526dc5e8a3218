"""
CompanyIntel — FDIC collector (banking registry)

Exact-name filters on BankFind are brittle: the stored names are upper-case,
the financials endpoint and institutions endpoint disagree on fields, and
holding companies are filed under a different name field. Strategies run in
order and the first one with any rows wins.

Monetary figures (ASSET, DEP, NETINC) are reported in thousands of dollars.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import structlog

from companyintel.collectors._fields import pick, pick_str, to_float
from companyintel.models import BankingSummary, Institution

logger = structlog.get_logger()

BASE_URL = "https://banks.data.fdic.gov/api"

FINANCIAL_FIELDS = "INSTNAME,CERT,CITY,STNAME,ASSET,DEP,NETINC,ESTYMD,ACTIVE,REGAGENT,CHRTAGNT,INSTCAT,REPDTE,ROA,EQCAPRT"
INSTITUTION_FIELDS = "INSTNAME,CERT,CITY,STALP,STNAME,ASSET,DEP,NETINC,ESTYMD,ACTIVE,REGAGENT,NAMEHCR"

THOUSANDS = 1000


@dataclass(frozen=True)
class Strategy:
    name: str
    endpoint: str
    filter_field: str
    fields: str
    transform: Callable[[str], str]


STRATEGIES: Tuple[Strategy, ...] = (
    Strategy("financials_by_name", "financials", "INSTNAME", FINANCIAL_FIELDS, lambda s: s),
    Strategy("institutions_by_name", "institutions", "INSTNAME", INSTITUTION_FIELDS, str.upper),
    Strategy("institutions_by_holding_company", "institutions", "NAMEHCR", INSTITUTION_FIELDS, str.upper),
)


def _is_active(value: Any) -> bool:
    return value is True or value == 1 or value == "1"


def parse_institution(d: Dict[str, Any]) -> Institution:
    return Institution(
        name=pick_str(d, ("INSTNAME",)),
        cert_number=pick_str(d, ("CERT",)),
        city=pick_str(d, ("CITY",)),
        state=pick_str(d, ("STNAME", "STALP")),
        total_assets=to_float(pick(d, ("ASSET",))) * THOUSANDS,
        total_deposits=to_float(pick(d, ("DEP",))) * THOUSANDS,
        net_income=to_float(pick(d, ("NETINC",))) * THOUSANDS,
        established=pick_str(d, ("ESTYMD",)),
        active=_is_active(d.get("ACTIVE")),
        regulator_name=pick_str(d, ("REGAGENT",)),
        charter_class=pick_str(d, ("CHRTAGNT",)),
        insured_status=pick_str(d, ("INSTCAT",)),
        return_on_assets=to_float(pick(d, ("ROA",))),
        equity_capital_ratio=to_float(pick(d, ("EQCAPRT",))),
    )


def parse_rows(data: Any) -> List[Institution]:
    rows = data.get("data") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return []
    out = []
    for item in rows:
        record = item.get("data") if isinstance(item, dict) else None
        if isinstance(record, dict):
            out.append(parse_institution(record))
    return out


async def _run_strategy(strategy: Strategy, company_name: str, client: httpx.AsyncClient) -> List[Institution]:
    params = {
        "filters": f'{strategy.filter_field}:"{strategy.transform(company_name)}"',
        "fields": strategy.fields,
        "limit": "10",
        "sort_by": "ASSET",
        "sort_order": "DESC",
    }
    resp = await client.get(f"{BASE_URL}/{strategy.endpoint}", params=params, headers={"Accept": "application/json"})
    resp.raise_for_status()
    return parse_rows(resp.json())


async def collect_banking(company_name: str, client: httpx.AsyncClient) -> Optional[BankingSummary]:
    """FDIC-insured institutions matching the company, largest first."""
    for strategy in STRATEGIES:
        try:
            institutions = await _run_strategy(strategy, company_name, client)
        except Exception as e:
            logger.info("fdic_strategy_failed", strategy=strategy.name, company=company_name, error=str(e))
            continue
        if institutions:
            logger.debug("fdic_strategy_matched", strategy=strategy.name, count=len(institutions))
            return BankingSummary(institutions=tuple(institutions), found=True)

    logger.info("fdic_not_found", company=company_name)
    return BankingSummary(institutions=(), found=False)
