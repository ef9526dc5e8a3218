"""
CompanyIntel — Trust Scoring Engine

Four independently scored categories, each 0-100:

    Consumer Complaints       (weight 1.0, 0.5 without data)  — CFPB
    Environmental Compliance  (weight 1.0, 0.5 without data)  — EPA ECHO
    Workplace Safety          (weight 1.0, 0.5 without data)  — OSHA
    Regulatory Filing         (weight 0.75, 0.5 without data) — SEC EDGAR

A category with no data scores a neutral baseline at half weight, so missing
sources pull the overall score toward the middle instead of to zero.
Overall = weighted mean of the categories, rounded half up.

Patent and banking data are reported but never scored.
"""
from __future__ import annotations
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

from companyintel.collectors._fields import round_half_up
from companyintel.models import (
    CategoryScore,
    CompanyIdentity,
    ComplaintSummary,
    EnvironmentalSummary,
    SafetySummary,
    TrustScore,
)

NO_DATA_WEIGHT = 0.5
ANNUAL_REPORT_FORM = "10-K"

# (min score, grade, color), checked top-down
GRADES: Tuple[Tuple[int, str, str], ...] = (
    (90, "A", "#10b981"),
    (80, "B", "#34d399"),
    (70, "C", "#fbbf24"),
    (60, "D", "#f97316"),
    (0,  "F", "#ef4444"),
)


def _clamp(score: int) -> int:
    return min(max(score, 0), 100)


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


def _pct(rate: float) -> str:
    return f"{rate:g}%"


# ── Categories ────────────────────────────────────

def score_complaints(data: Optional[ComplaintSummary]) -> CategoryScore:
    """Category: how many consumers complain, and how does the company respond?"""
    if data is None:
        return CategoryScore(70, NO_DATA_WEIGHT, "No consumer complaint data available")

    score = 90
    total = data.total_complaints

    if total > 10_000:
        score -= 30
    elif total > 5_000:
        score -= 20
    elif total > 1_000:
        score -= 15
    elif total > 100:
        score -= 5

    if data.timely_response_rate >= 98:
        score += 5
    elif data.timely_response_rate >= 95:
        score += 2
    elif data.timely_response_rate < 80:
        score -= 10

    if data.disputed_rate > 30:
        score -= 10
    elif data.disputed_rate > 20:
        score -= 5

    return CategoryScore(
        _clamp(score),
        1.0,
        f"{total:,} complaints, {_pct(data.timely_response_rate)} timely response",
    )


def score_environmental(data: Optional[EnvironmentalSummary]) -> CategoryScore:
    """Category: violations, penalties and compliance across EPA-tracked facilities."""
    if data is None or data.total_facilities == 0:
        return CategoryScore(75, NO_DATA_WEIGHT, "No EPA facility data")

    score = 90

    if data.total_violations > 50:
        score -= 30
    elif data.total_violations > 20:
        score -= 20
    elif data.total_violations > 5:
        score -= 10
    elif data.total_violations > 0:
        score -= 5

    if data.total_penalties > 1_000_000:
        score -= 20
    elif data.total_penalties > 100_000:
        score -= 10
    elif data.total_penalties > 10_000:
        score -= 5

    if data.compliance_rate >= 95:
        score += 5
    elif data.compliance_rate < 50:
        score -= 15

    return CategoryScore(
        _clamp(score),
        1.0,
        f"{data.total_facilities} facilities, {data.total_violations} violations, "
        f"{_money(data.total_penalties)} in penalties",
    )


def score_safety(data: Optional[SafetySummary]) -> CategoryScore:
    """Category: OSHA violation severity and penalties."""
    if data is None or data.total_inspections == 0:
        return CategoryScore(75, NO_DATA_WEIGHT, "No OSHA inspection data")

    score = 85

    if data.willful_violation_count > 0:
        score -= 25

    if data.serious_violation_count > 20:
        score -= 20
    elif data.serious_violation_count > 10:
        score -= 15
    elif data.serious_violation_count > 0:
        score -= 5

    if data.total_penalties > 500_000:
        score -= 15
    elif data.total_penalties > 100_000:
        score -= 10
    elif data.total_penalties > 10_000:
        score -= 5

    return CategoryScore(
        _clamp(score),
        1.0,
        f"{data.total_inspections} inspections, {data.total_violations} violations, "
        f"{_money(data.total_penalties)} penalties",
    )


def _parse_filing_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat(text[:10])
    except (TypeError, ValueError):
        return None


def score_filings(data: Optional[CompanyIdentity], now: Optional[datetime] = None) -> CategoryScore:
    """Category: is the company keeping up with its SEC reporting?"""
    if data is None:
        return CategoryScore(50, NO_DATA_WEIGHT, "No SEC filing data")

    today = (now or datetime.now(timezone.utc)).date()
    cutoff = today - timedelta(days=365)

    recent = 0
    for filing in data.recent_filings:
        filed = _parse_filing_date(filing.filing_date)
        if filed is not None and filed > cutoff:
            recent += 1

    score = 85
    if recent > 5:
        score += 10
    elif recent > 0:
        score += 5
    else:
        score -= 15

    if any(f.form == ANNUAL_REPORT_FORM for f in data.recent_filings):
        score += 5

    return CategoryScore(
        _clamp(score),
        0.75,
        f"{len(data.recent_filings)} recent filings, CIK: {data.cik}",
    )


# ── Composite ─────────────────────────────────────

def grade_for(score: int) -> Tuple[str, str]:
    for floor, grade, color in GRADES:
        if score >= floor:
            return grade, color
    return GRADES[-1][1], GRADES[-1][2]


def calculate_trust_score(
    filings: Optional[CompanyIdentity],
    complaints: Optional[ComplaintSummary],
    environmental: Optional[EnvironmentalSummary],
    safety: Optional[SafetySummary],
    now: Optional[datetime] = None,
) -> TrustScore:
    """
    Score whatever regulatory data is available. Pure: the same inputs (and
    evaluation time) always produce the same TrustScore.
    """
    consumer = score_complaints(complaints)
    environment = score_environmental(environmental)
    workplace = score_safety(safety)
    regulatory = score_filings(filings, now=now)

    categories = (consumer, environment, workplace, regulatory)
    total_weight = sum(c.weight for c in categories)
    if total_weight > 0:
        overall = int(round_half_up(sum(c.score * c.weight for c in categories) / total_weight))
    else:
        overall = 50
    overall = _clamp(overall)

    grade, color = grade_for(overall)
    return TrustScore(
        overall=overall,
        grade=grade,
        grade_color=color,
        consumer_complaints=consumer,
        environmental_compliance=environment,
        workplace_safety=workplace,
        regulatory_filing=regulatory,
    )
