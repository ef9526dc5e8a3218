"""
CompanyIntel — Report Pipeline

Every company report flows through this pipeline:

    Request → Cache Check → [Resolve CIK] → [Collect Sources] → Score → Cache → Response

The pipeline handles:
    - Cache-first strategy (reports for 30 min, search results for 1 hour)
    - CIK resolution through the SEC ticker directory when the caller has none
    - Parallel collection from all registries, each under its own timeout
    - Graceful degradation (any source can fail without failing the report)

Only the two CIK-keyed SEC sources wait on resolution; everything else is keyed
by the company name and fans out at once with them.
"""
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional

import httpx
import structlog

from companyintel.collectors import cfpb, epa, fdic, osha, sec, uspto
from companyintel.compute.cache import (
    NS_DIRECTORY,
    NS_REPORT,
    NS_SEARCH,
    ResultCache,
    make_key,
)
from companyintel.config import Settings, get_settings
from companyintel.errors import InvalidReportRequest
from companyintel.models import CompositeReport, SearchCandidate
from companyintel.trust.scoring import calculate_trust_score

logger = structlog.get_logger()

USER_AGENT = "CompanyIntel/1.0 (+https://companyintel.local/bot)"


@dataclass(frozen=True)
class SourceOutcome:
    """Result of one collector branch: a value, or the reason there isn't one."""
    name: str
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReportPipeline:
    """
    Builds composite company reports.

    Usage:
        cache = ResultCache()
        pipeline = ReportPipeline(cache)
        report = await pipeline.build_report("Acme Corp")
        candidates = await pipeline.search("acme")
    """

    def __init__(
        self,
        cache: ResultCache,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        source_timeout: Optional[float] = None,
    ):
        self.cache = cache
        self.settings = settings or get_settings()
        self._transport = transport
        self.source_timeout = source_timeout if source_timeout is not None else self.settings.SOURCE_TIMEOUT

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=httpx.Timeout(self.settings.HTTP_TIMEOUT, connect=self.settings.HTTP_CONNECT_TIMEOUT),
            transport=self._transport,
        )

    # ── Search ────────────────────────────────────

    async def search(self, query: Optional[str]) -> List[SearchCandidate]:
        """Candidate companies for a free-text query. Short queries return nothing."""
        q = (query or "").strip()
        if len(q) < self.settings.SEARCH_MIN_LENGTH:
            return []

        async with self._client() as client:
            results = await self._search_candidates(q, client)
        return list(results or [])

    async def _ticker_directory(self, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        key = make_key(NS_DIRECTORY, "sec_company_tickers")
        directory = self.cache.get(key)
        if directory is None:
            directory = await sec.fetch_ticker_directory(client, self.settings.SEC_USER_AGENT)
            if directory is not None:
                self.cache.set(key, directory, ttl=self.settings.DIRECTORY_CACHE_TTL)
        return directory

    async def _search_candidates(self, query: str, client: httpx.AsyncClient) -> Optional[List[SearchCandidate]]:
        """
        Search through the cached directory. Returns None when the directory
        could not be loaded, so an outage is never cached as "no matches".
        """
        key = make_key(NS_SEARCH, query)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        directory = await self._ticker_directory(client)
        if directory is None:
            return None

        results = sec.search_directory(directory, query, limit=self.settings.SEARCH_MAX_RESULTS)
        self.cache.set(key, tuple(results), ttl=self.settings.SEARCH_CACHE_TTL)
        logger.debug("sec_search", query=query[:80], results=len(results))
        return results

    # ── Report ────────────────────────────────────

    async def build_report(
        self,
        company_name: Optional[str],
        cik: Optional[str] = None,
        force_refresh: bool = False,
    ) -> CompositeReport:
        """
        The main entry point for company reports.

        Args:
            company_name: Display name to look up. Required.
            cik: SEC identifier if the caller already knows it (e.g. picked from search).
            force_refresh: Skip the cache and recollect.

        Raises:
            InvalidReportRequest: blank company name or non-numeric CIK.
        """
        name = (company_name or "").strip()
        if not name:
            raise InvalidReportRequest("company", "company name is required")

        padded_cik = None
        if cik is not None and str(cik).strip():
            padded_cik = sec.normalize_cik(cik)
            if padded_cik is None:
                raise InvalidReportRequest("cik", "cik must be numeric with at most 10 digits")

        key = make_key(NS_REPORT, name, padded_cik)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("report_cache_hit", company=name[:80])
                return cached

        start = time.time()
        user_agent = self.settings.SEC_USER_AGENT

        async with self._client() as client:

            # ── Step 1: Resolve CIK ──────────────────
            candidates: List[SearchCandidate] = []
            resolved_cik = padded_cik
            if resolved_cik is None:
                try:
                    candidates = await asyncio.wait_for(
                        self._search_candidates(name, client),
                        timeout=self.source_timeout,
                    ) or []
                except asyncio.TimeoutError:
                    logger.warning("cik_resolution_timeout", company=name[:80], timeout=self.source_timeout)
                except Exception as e:
                    logger.warning("cik_resolution_failed", company=name[:80], error=str(e))
                if candidates:
                    resolved_cik = candidates[0].cik
                    logger.debug("cik_resolved", company=name[:80], cik=resolved_cik)
                else:
                    logger.info("cik_unresolved", company=name[:80])

            # ── Step 2: Fan out ──────────────────────
            branches: Dict[str, Awaitable] = {}
            if resolved_cik:
                branches["filings"] = sec.collect_company(resolved_cik, client, user_agent)
                branches["financials"] = sec.collect_financials(resolved_cik, client, user_agent)
            branches["complaints"] = cfpb.collect_complaints(name, client)
            branches["environmental"] = epa.collect_environmental(name, client)
            branches["safety"] = osha.collect_safety(name, client, api_key=self.settings.DOL_API_KEY)
            branches["intellectual_property"] = uspto.collect_ip(name, client)
            branches["banking"] = fdic.collect_banking(name, client)

            names = list(branches.keys())
            settled = await asyncio.gather(
                *[self._guarded(n, c) for n, c in branches.items()],
                return_exceptions=True,
            )

        # ── Step 3: Merge ────────────────────────────
        outcomes: Dict[str, SourceOutcome] = {}
        for branch, res in zip(names, settled):
            if isinstance(res, SourceOutcome):
                outcomes[branch] = res
            else:
                outcomes[branch] = SourceOutcome(branch, error=f"{type(res).__name__}: {str(res)[:100]}")

        values = {n: o.value for n, o in outcomes.items()}
        filings = values.get("filings")

        # ── Step 4: Score ────────────────────────────
        trust_score = calculate_trust_score(
            filings,
            values.get("complaints"),
            values.get("environmental"),
            values.get("safety"),
        )

        report = CompositeReport(
            company_name=(filings.name if filings is not None and filings.name else name),
            trust_score=trust_score,
            generated_at=datetime.now(timezone.utc).isoformat(),
            search_results=tuple(candidates),
            filings=filings,
            financials=values.get("financials"),
            complaints=values.get("complaints"),
            environmental=values.get("environmental"),
            safety=values.get("safety"),
            intellectual_property=values.get("intellectual_property"),
            banking=values.get("banking"),
            sources_queried=tuple(names),
            sources_responded=tuple(n for n in names if outcomes[n].value is not None),
            collection_errors=tuple(f"{n}: {o.error}" for n, o in outcomes.items() if not o.ok),
            collection_time_ms=round((time.time() - start) * 1000, 2),
        )

        # ── Step 5: Cache ────────────────────────────
        self.cache.set(key, report, ttl=self.settings.REPORT_CACHE_TTL)

        logger.info(
            "report_built",
            company=name[:80],
            cik=resolved_cik,
            score=trust_score.overall,
            grade=trust_score.grade,
            sources_responded=len(report.sources_responded),
            sources_queried=len(names),
            collection_time_ms=report.collection_time_ms,
        )
        return report

    async def _guarded(self, name: str, coro: Awaitable) -> SourceOutcome:
        """Run one collector under the source timeout. Never raises."""
        try:
            value = await asyncio.wait_for(coro, timeout=self.source_timeout)
            return SourceOutcome(name, value=value)
        except asyncio.TimeoutError:
            logger.warning("source_timeout", source=name, timeout=self.source_timeout)
            return SourceOutcome(name, error="timeout")
        except Exception as e:
            logger.warning("source_failed", source=name, error=str(e))
            return SourceOutcome(name, error=str(e)[:100] or type(e).__name__)
