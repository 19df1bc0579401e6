"""
Pytest test suite for the storefront backend.

Test categories:
- Unit tests: services and gateway clients with mocked or MockTransport HTTP
- Integration tests: ORM models and catalog sync against in-memory SQLite
- API tests: the FastAPI app through httpx ASGITransport
"""
