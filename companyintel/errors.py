"""
CompanyIntel — Errors raised at the request boundary.

Source failures never surface here: collectors swallow their own errors and the
pipeline reports them as missing data. Only malformed requests raise.
"""


class CompanyIntelError(Exception):
    pass


class InvalidReportRequest(CompanyIntelError, ValueError):
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid {field}: {message}")
