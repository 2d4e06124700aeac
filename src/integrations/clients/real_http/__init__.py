"""
Real HTTP integration clients.

These clients communicate with real external systems via httpx:
- the upstream insurance-quoting API (finuslugi)
- the Google Sheets API v4 (rate spreadsheet)

Important:
- The spreadsheet source must implement the same interface as the in-memory mock
- Upstream failures surface as UpstreamError (src/integrations/policy/response_wrappers.py)

Switching:
The selection of mock vs real clients should happen in src/api/main.py only.
"""
