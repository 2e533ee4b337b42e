"""
Donations data-access layer.

- donations.models: SQLAlchemy models (Donation, User)
- donations.schemas: Pydantic input/output schemas
- donations.repositories: Filter compiler, query execution and record lifecycle
"""
