"""
Test suite for the Qualinex warranty backend.

Test Categories:
- Unit tests: access policy and query builder (no database)
- Service tests: warranty, reporting and user services against an in-memory store
- API tests (*_api.py, test_auth.py): HTTP endpoint tests using httpx AsyncClient

Running Tests:
- All tests: pytest
- API only: pytest -m api
- Admin only: pytest -m admin
- Non-admin: pytest -m "not admin"
"""
