"""
CompanyIntel — Canonical Records

Every collector translates its registry's response into one of these records.
Records are frozen after construction; collections are tuples so a cached
report can be shared between requests without copying.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, Tuple


def _serialize(obj) -> Dict[str, Any]:
    return asdict(obj)


# ── Filings Registry (SEC) ────────────────────────

@dataclass(frozen=True)
class SearchCandidate:
    cik: str
    name: str
    ticker: str

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class Address:
    street1: str = ""
    street2: str = ""
    city: str = ""
    state_or_country: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class Filing:
    form: str
    filing_date: str
    primary_document: str = ""
    description: str = ""


@dataclass(frozen=True)
class CompanyIdentity:
    cik: Optional[str]                       # 10-digit zero-padded, None until resolved
    name: str
    ticker: str = ""
    tickers: Tuple[str, ...] = ()
    exchanges: Tuple[str, ...] = ()
    sic: str = ""
    sic_description: str = ""
    state_of_incorporation: str = ""
    fiscal_year_end: str = ""                # MMDD
    ein: str = ""
    website: str = ""
    business_address: Address = field(default_factory=Address)
    mailing_address: Address = field(default_factory=Address)
    recent_filings: Tuple[Filing, ...] = ()

    def __post_init__(self):
        if self.cik is not None and not (len(self.cik) == 10 and self.cik.isdigit()):
            raise ValueError(f"cik must be a 10-digit numeric string, got {self.cik!r}")

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class Observation:
    period: str                              # period-end date, YYYY-MM-DD
    value: float
    year: int


@dataclass(frozen=True)
class FinancialSeries:
    revenue: Tuple[Observation, ...] = ()
    net_income: Tuple[Observation, ...] = ()
    total_assets: Tuple[Observation, ...] = ()
    total_liabilities: Tuple[Observation, ...] = ()
    shareholders_equity: Tuple[Observation, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


# ── Complaint Registry (CFPB) ─────────────────────

@dataclass(frozen=True)
class Bucket:
    name: str
    count: int


@dataclass(frozen=True)
class YearCount:
    year: int
    count: int


@dataclass(frozen=True)
class Complaint:
    date: str
    product: str
    issue: str
    company_response: str
    timely: bool


@dataclass(frozen=True)
class ComplaintSummary:
    company_name: str                        # the registry's canonical name used for the query
    total_complaints: int
    products: Tuple[Bucket, ...] = ()
    issues: Tuple[Bucket, ...] = ()
    timely_response_rate: float = 0.0        # percent, one decimal
    disputed_rate: float = 0.0               # percent, one decimal
    recent_complaints: Tuple[Complaint, ...] = ()
    complaints_by_year: Tuple[YearCount, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


# ── Environmental Registry (EPA ECHO) ─────────────

@dataclass(frozen=True)
class Facility:
    name: str
    registry_id: str
    address: str
    city: str
    state: str
    compliance_status: str
    last_inspection: str
    inspection_count: int
    penalties: float
    programs: Tuple[str, ...]
    snc_flag: bool


@dataclass(frozen=True)
class EnvironmentalSummary:
    facilities: Tuple[Facility, ...] = ()
    total_facilities: int = 0
    total_violations: int = 0
    total_penalties: float = 0.0
    compliance_rate: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


# ── Safety Registry (OSHA) ────────────────────────

@dataclass(frozen=True)
class Inspection:
    activity_nr: str
    establishment_name: str
    site: str
    city: str
    state: str
    open_date: str
    close_date: str
    inspection_type: str
    total_penalty: float
    serious_violations: int
    willful_violations: int
    other_violations: int


@dataclass(frozen=True)
class SafetySummary:
    inspections: Tuple[Inspection, ...] = ()
    total_inspections: int = 0
    total_violations: int = 0
    total_penalties: float = 0.0
    serious_violation_count: int = 0
    willful_violation_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


# ── IP Registry (USPTO) ───────────────────────────

@dataclass(frozen=True)
class Patent:
    title: str
    patent_number: str
    filing_date: str
    grant_date: str
    inventors: Tuple[str, ...] = ()
    abstract: str = ""


@dataclass(frozen=True)
class Trademark:
    name: str
    serial_number: str
    registration_number: str
    filing_date: str
    status: str
    description: str


@dataclass(frozen=True)
class IPSummary:
    patents: Tuple[Patent, ...] = ()
    trademarks: Tuple[Trademark, ...] = ()
    total_patents: int = 0                   # registry total, may exceed len(patents)
    total_trademarks: int = 0
    patent_status: str = "ok"                # "ok" | "unsupported"
    trademark_status: str = "unsupported"
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


# ── Banking Registry (FDIC) ───────────────────────

@dataclass(frozen=True)
class Institution:
    name: str
    cert_number: str
    city: str
    state: str
    total_assets: float                      # whole dollars
    total_deposits: float
    net_income: float
    established: str
    active: bool
    regulator_name: str
    charter_class: str = ""
    insured_status: str = ""
    return_on_assets: float = 0.0
    equity_capital_ratio: float = 0.0


@dataclass(frozen=True)
class BankingSummary:
    institutions: Tuple[Institution, ...] = ()
    found: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(self)


# ── Trust Score ───────────────────────────────────

@dataclass(frozen=True)
class CategoryScore:
    score: int
    weight: float
    details: str


@dataclass(frozen=True)
class TrustScore:
    overall: int
    grade: str
    grade_color: str
    consumer_complaints: CategoryScore
    environmental_compliance: CategoryScore
    workplace_safety: CategoryScore
    regulatory_filing: CategoryScore

    @property
    def categories(self) -> Dict[str, CategoryScore]:
        return {
            "consumer_complaints": self.consumer_complaints,
            "environmental_compliance": self.environmental_compliance,
            "workplace_safety": self.workplace_safety,
            "regulatory_filing": self.regulatory_filing,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "grade": self.grade,
            "grade_color": self.grade_color,
            "categories": {k: asdict(v) for k, v in self.categories.items()},
        }


# ── Composite Report ──────────────────────────────

SOURCE_NAMES = (
    "filings",
    "financials",
    "complaints",
    "environmental",
    "safety",
    "intellectual_property",
    "banking",
)


@dataclass(frozen=True)
class CompositeReport:
    company_name: str
    trust_score: TrustScore
    generated_at: str
    search_results: Tuple[SearchCandidate, ...] = ()
    filings: Optional[CompanyIdentity] = None
    financials: Optional[FinancialSeries] = None
    complaints: Optional[ComplaintSummary] = None
    environmental: Optional[EnvironmentalSummary] = None
    safety: Optional[SafetySummary] = None
    intellectual_property: Optional[IPSummary] = None
    banking: Optional[BankingSummary] = None

    # Collection metadata
    sources_queried: Tuple[str, ...] = ()
    sources_responded: Tuple[str, ...] = ()
    collection_errors: Tuple[str, ...] = ()
    collection_time_ms: float = 0.0

    @property
    def data_sources(self) -> Dict[str, bool]:
        return {name: getattr(self, name) is not None for name in SOURCE_NAMES}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "company_name": self.company_name,
            "search_results": [c.to_dict() for c in self.search_results],
        }
        for name in SOURCE_NAMES:
            value = getattr(self, name)
            out[name] = value.to_dict() if value is not None else None
        out["trust_score"] = self.trust_score.to_dict()
        out["data_sources"] = self.data_sources
        out["generated_at"] = self.generated_at
        out["collection_metadata"] = {
            "sources_queried": list(self.sources_queried),
            "sources_responded": list(self.sources_responded),
            "errors": list(self.collection_errors),
            "collection_time_ms": self.collection_time_ms,
        }
        return out
