"""
CompanyIntel — Company Report API

Public endpoints:
    GET  /v1/company/report   - Composite report + trust score for one company
    GET  /v1/company/search   - Candidate companies for a free-text query
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel
import structlog

from companyintel.compute.pipeline import ReportPipeline
from companyintel.errors import InvalidReportRequest

logger = structlog.get_logger()


# =============================================
# RESPONSE MODELS
# =============================================

class SearchResult(BaseModel):
    cik: str
    name: str
    ticker: str


class SearchResponse(BaseModel):
    results: List[SearchResult]


def _pipeline(request: Request) -> ReportPipeline:
    return request.app.state.pipeline


# =============================================
# ROUTES
# =============================================

router = APIRouter(prefix="/v1/company", tags=["company"])


@router.get("/report")
async def company_report(
    request: Request,
    company: Optional[str] = Query(None, description="Company name, e.g. 'Wells Fargo'"),
    cik: Optional[str] = Query(None, description="SEC CIK if already known (skips name resolution)"),
    refresh: bool = Query(False, description="Bypass the report cache"),
):
    """
    Full composite report: SEC profile and financials, CFPB complaints, EPA
    facilities, OSHA inspections, patents, FDIC institutions and a trust score.

    Sources that fail are reported as null; the report itself always succeeds
    for a valid request.
    """
    try:
        report = await _pipeline(request).build_report(company, cik=cik, force_refresh=refresh)
    except InvalidReportRequest as e:
        raise HTTPException(status_code=400, detail=e.message)

    logger.info("company_report",
                company=report.company_name[:80],
                score=report.trust_score.overall,
                grade=report.trust_score.grade,
                responded=len(report.sources_responded))
    return report.to_dict()


@router.get("/search", response_model=SearchResponse)
async def company_search(
    request: Request,
    q: str = Query("", description="Company name or exact ticker"),
):
    candidates = await _pipeline(request).search(q)
    return SearchResponse(results=[SearchResult(**c.to_dict()) for c in candidates])

