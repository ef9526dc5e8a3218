"""
Pytest configuration and shared fixtures.

Upstream registries are faked with httpx.MockTransport so every collector runs
its real request building and parsing code.
"""
from datetime import date, timedelta
from typing import Any, Callable, List, Optional, Tuple

import httpx
import pytest

from companyintel.config import Settings


# =========================================================================
# Mock registry router
# =========================================================================


class MockRouter:
    """
    Routes requests by host and path to canned responses.

    Later registrations win, so a test can override one route of a
    fully-populated router. Every request is recorded.
    """

    def __init__(self):
        self.routes: List[Tuple[str, str, bool, Callable[[httpx.Request], httpx.Response]]] = []
        self.requests: List[httpx.Request] = []

    def add(
        self,
        host: str,
        path: str,
        json: Any = None,
        status: int = 200,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        prefix: bool = False,
    ) -> "MockRouter":
        if handler is None:
            def handler(request, _json=json, _status=status):
                return httpx.Response(_status, json=_json)
        self.routes.append((host, path, prefix, handler))
        return self

    def fail(self, host: str, path: str, prefix: bool = False) -> "MockRouter":
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        return self.add(host, path, handler=handler, prefix=prefix)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for host, path, prefix, handler in reversed(self.routes):
            if request.url.host != host:
                continue
            if request.url.path == path or (prefix and request.url.path.startswith(path)):
                return handler(request)
        return httpx.Response(404, json={"error": "not found"})

    def calls(self, host: str, path: str = "") -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.host == host and r.url.path.startswith(path)
        ]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)


SEC_WWW = "www.sec.gov"
SEC_DATA = "data.sec.gov"
CFPB = "www.consumerfinance.gov"
CFPB_SEARCH = "/data-research/consumer-complaints/search/api/v1/"
CFPB_SUGGEST = CFPB_SEARCH + "_suggest_company"
EPA = "echodata.epa.gov"
EPA_FACILITIES = "/echo/echo_rest_services.get_facilities"
EPA_QID = "/echo/echo_rest_services.get_qid"
DOL = "data.dol.gov"
DOL_SEARCH = "/get/inspection/search/"
USPTO = "assignment-api.uspto.gov"
USPTO_LOOKUP = "/patent/lookup"
FDIC = "banks.data.fdic.gov"

ACME_CIK = "0000001000"


# =========================================================================
# Registry payloads
# =========================================================================


def ticker_directory() -> dict:
    return {
        "0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."},
        "1": {"cik_str": 72971, "ticker": "WFC", "title": "WELLS FARGO & COMPANY/MN"},
        "2": {"cik_str": 1000, "ticker": "ACU", "title": "Acme United Corp"},
        "3": {"cik_str": 1001, "ticker": "ACMX", "title": "Acme United Holdings"},
    }


def submissions(today: Optional[date] = None) -> dict:
    today = today or date.today()
    recent = [today - timedelta(days=d) for d in (10, 45, 120)]
    return {
        "cik": "1000",
        "name": "ACME UNITED CORP",
        "tickers": ["ACU"],
        "exchanges": ["NYSE American"],
        "sic": "3420",
        "sicDescription": "Cutlery, Handtools & General Hardware",
        "stateOfIncorporation": "CT",
        "fiscalYearEnd": "1231",
        "ein": "060236700",
        "website": "",
        "addresses": {
            "business": {"street1": "1 Waterview Dr", "street2": None, "city": "Shelton",
                         "stateOrCountry": "CT", "zipCode": "06484"},
            "mailing": {"street1": "1 Waterview Dr", "city": "Shelton",
                        "stateOrCountry": "CT", "zipCode": "06484"},
        },
        "filings": {
            "recent": {
                "form": ["8-K", "10-Q", "10-K"],
                "filingDate": [d.isoformat() for d in recent],
                "primaryDocument": ["acu-8k.htm", "acu-10q.htm", "acu-10k.htm"],
                "primaryDocDescription": ["8-K", "10-Q", "10-K"],
            }
        },
    }


def _fy(start: Optional[str], end: str, val: float, filed: str, form: str = "10-K", fp: str = "FY") -> dict:
    entry = {"end": end, "val": val, "form": form, "fp": fp, "filed": filed}
    if start:
        entry["start"] = start
    return entry


def company_facts() -> dict:
    return {
        "cik": 1000,
        "facts": {
            "us-gaap": {
                "Revenues": {"units": {"USD": [
                    _fy("2021-01-01", "2021-12-31", 100.0, "2022-02-20"),
                    _fy("2022-01-01", "2022-12-31", 120.0, "2023-02-20"),
                ]}},
                "RevenueFromContractWithCustomerExcludingAssessedTax": {"units": {"USD": [
                    _fy("2023-01-01", "2023-12-31", 150.0, "2024-02-20"),
                    # fourth quarter reported inside the annual filing
                    _fy("2023-10-01", "2023-12-31", 40.0, "2024-02-20"),
                    _fy("2023-01-01", "2023-03-31", 35.0, "2023-05-01", form="10-Q", fp="Q1"),
                ]}},
                "NetIncomeLoss": {"units": {"USD": [
                    _fy("2023-01-01", "2023-12-31", 15.0, "2024-02-20"),
                    _fy("2022-01-01", "2022-12-31", 12.0, "2023-02-20"),
                ]}},
                "Assets": {"units": {"USD": [
                    _fy(None, "2023-12-31", 600.0, "2024-02-20"),
                    _fy(None, "2022-12-31", 500.0, "2023-02-20"),
                    # restated in the following year's filing
                    _fy(None, "2022-12-31", 510.0, "2024-02-20"),
                ]}},
                "Liabilities": {"units": {"USD": [
                    _fy(None, "2023-12-31", 250.0, "2024-02-20"),
                ]}},
            }
        },
    }


def complaint_search() -> dict:
    return {
        "hits": {
            "total": {"value": 1234, "relation": "eq"},
            "hits": [
                {"_source": {"date_received": "2024-05-01T12:00:00", "product": "Mortgage",
                             "issue": "Trouble during payment process",
                             "company_response": "Closed with explanation", "timely": "Yes"}},
                {"_source": {"date_received": "2024-04-12T12:00:00", "product": "Credit card",
                             "issue": "Billing dispute",
                             "company_response": "In progress", "timely": "No"}},
            ],
        },
        "aggregations": {
            "product": {"product": {"buckets": [
                {"key": "Mortgage", "doc_count": 800},
                {"key": "Credit card", "doc_count": 434},
            ]}},
            "issue": {"issue": {"buckets": [
                {"key": "Trouble during payment process", "doc_count": 500},
            ]}},
            "timely": {"timely": {"buckets": [
                {"key": "Yes", "doc_count": 1200},
                {"key": "No", "doc_count": 34},
            ]}},
            "consumer_disputed": {"consumer_disputed": {"buckets": [
                {"key": "N/A", "doc_count": 1000},
                {"key": "No", "doc_count": 200},
                {"key": "Yes", "doc_count": 34},
            ]}},
            "date_received_min": {"date_received_min": {"buckets": [
                {"key_as_string": "2022-01-01T00:00:00.000Z", "doc_count": 300},
                {"key_as_string": "2024-01-01T00:00:00.000Z", "doc_count": 500},
                {"key_as_string": "2023-01-01T00:00:00.000Z", "doc_count": 434},
            ]}},
        },
    }


def facility_search() -> dict:
    return {
        "Results": {
            "Message": "Success",
            "QueryID": "4471",
            "QueryRows": "4",
            "SVRows": "1",
            "CVRows": "2",
            "TotalPenalties": "$15,000",
        }
    }


def facility_detail() -> dict:
    return {
        "Results": {
            "Facilities": [
                {
                    "FacName": "ACME UNITED PLANT",
                    "RegistryID": "110000350174",
                    "FacStreet": "1 Waterview Dr",
                    "FacCity": "Shelton",
                    "FacState": "CT",
                    "FacComplianceStatus": "No Violation Identified",
                    "FacDateLastInspection": "04/01/2023",
                    "FacInspectionCount": "3",
                    "CAAPenalties": "5000",
                    "AIRFlag": "Y",
                    "CWAComplianceStatus": "No Violation",
                    "TRIFlag": "Y",
                    "FacSNCFlg": "N",
                },
                {"FacName": "ACME UNITED WAREHOUSE", "RegistryID": "110000350175", "FacSNCFlg": "Y"},
            ]
        }
    }


def inspections() -> list:
    return [
        {
            "activity_nr": "1234567",
            "estab_name": "ACME UNITED CORP",
            "site_address": "1 Waterview Dr",
            "site_city": "Shelton",
            "site_state": "CT",
            "open_date": "2023-03-01",
            "close_case_date": "2023-06-01",
            "insp_type": "Planned",
            "total_current_penalty": "12,500.00",
            "serious_violations": "2",
            "willful_violations": "0",
            "other_violations": "1",
        },
        {
            "activityNr": "7654321",
            "estabName": "ACME UNITED",
            "siteCity": "Fremont",
            "siteState": "NC",
            "openDate": "2022-01-10",
            "inspType": "Complaint",
            "totalCurrentPenalty": 3000,
            "nr_serious": 1,
            "nr_other": 0,
        },
    ]


def patent_assignments() -> dict:
    return {
        "response": {
            "numFound": 42,
            "docs": [
                {"inventionTitle": "Safety scissors", "patentNumber": "US10123456",
                 "filingDate": "2019-01-01", "grantDate": "2020-06-01", "inventors": ["J. Doe"]},
                {"inventionTitle": "Blade guard", "patentNumber": "US10654321"},
            ],
        }
    }


def fdic_rows() -> dict:
    return {
        "data": [
            {"data": {"INSTNAME": "ACME UNITED BANK", "CERT": 12345, "CITY": "Shelton",
                      "STNAME": "Connecticut", "ASSET": 1500, "DEP": 1200, "NETINC": 15,
                      "ESTYMD": "01/01/1950", "ACTIVE": 1, "REGAGENT": "FDIC"}},
        ],
        "meta": {"total": 1},
    }


def install_registries(router: MockRouter, today: Optional[date] = None) -> MockRouter:
    """Every registry answering for Acme United."""
    return (
        router
        .add(SEC_WWW, "/files/company_tickers.json", json=ticker_directory())
        .add(SEC_DATA, f"/submissions/CIK{ACME_CIK}.json", json=submissions(today))
        .add(SEC_DATA, f"/api/xbrl/companyfacts/CIK{ACME_CIK}.json", json=company_facts())
        .add(CFPB, CFPB_SUGGEST, json=["ACME UNITED CORPORATION"])
        .add(CFPB, CFPB_SEARCH, json=complaint_search())
        .add(EPA, EPA_FACILITIES, json=facility_search())
        .add(EPA, EPA_QID, json=facility_detail())
        .add(DOL, DOL_SEARCH, json=inspections(), prefix=True)
        .add(USPTO, USPTO_LOOKUP, json=patent_assignments())
        .add(FDIC, "/api/financials", json={"data": []})
        .add(FDIC, "/api/institutions", json=fdic_rows())
    )


# =========================================================================
# Fixtures
# =========================================================================


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def router():
    return MockRouter()


@pytest.fixture
def registries(router):
    """A router with every registry populated."""
    return install_registries(router)


@pytest.fixture
def settings(monkeypatch):
    """Development settings, independent of the caller's environment."""
    for var in (
        "COMPANYINTEL_ENV", "SEC_USER_AGENT", "DOL_API_KEY", "SOURCE_TIMEOUT",
        "REPORT_CACHE_TTL", "SEARCH_CACHE_TTL", "DIRECTORY_CACHE_TTL",
        "CACHE_SWEEP_INTERVAL", "SEARCH_MIN_LENGTH", "SEARCH_MAX_RESULTS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SEC_USER_AGENT", "CompanyIntel tests (tests@example.com)")
    return Settings()
