"""CompanyIntel — public-registry company reports with a composite trust score."""

__version__ = "1.0.0"
