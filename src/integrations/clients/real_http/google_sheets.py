"""
Google Sheets spreadsheet source (read-only, Sheets API v4 over httpx).

Used when GOOGLE_SPREADSHEET_ID is configured. Authenticates, in order of
preference, with a service account (GOOGLE_SERVICE_ACCOUNT_EMAIL +
GOOGLE_PRIVATE_KEY, token refreshed by google-auth when it expires), a
pre-issued bearer access token, or an API key (public sheets only).

The document's sheet list is memoised for a short time so repeated list calls
do not hit the metadata endpoint; each sheet's values are fetched lazily,
once, on first header/rows access.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from src.integrations.contracts.interfaces import Sheet, SpreadsheetSource

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


def service_account_credentials(email: str, private_key: str) -> service_account.Credentials:
    """Build read-only service account credentials from an email and PEM key.

    Keys coming from environment files usually carry escaped newlines.
    """
    info = {
        "type": "service_account",
        "client_email": email,
        "private_key": private_key.replace("\\n", "\n"),
        "token_uri": GOOGLE_TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=[SHEETS_READONLY_SCOPE])


class GoogleSheet(Sheet):
    def __init__(self, source: "GoogleSheetsSource", title: str) -> None:
        self._source = source
        self._title = title
        self._values: Optional[List[List[str]]] = None

    @property
    def title(self) -> str:
        return self._title

    async def _load(self) -> List[List[str]]:
        if self._values is None:
            self._values = await self._source.fetch_values(self._title)
        return self._values

    async def load_header(self) -> List[str]:
        values = await self._load()
        return list(values[0]) if values else []

    async def load_rows(self) -> List[List[str]]:
        values = await self._load()
        return [list(row) for row in values[1:]]


class GoogleSheetsSource(SpreadsheetSource):
    def __init__(
        self,
        spreadsheet_id: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        credentials: Optional[Any] = None,
        metadata_ttl_seconds: float = 60.0,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            credentials: google-auth credentials (e.g. from service_account_credentials);
                takes precedence over access_token and api_key
        """
        self.spreadsheet_id = spreadsheet_id or os.getenv("GOOGLE_SPREADSHEET_ID", "")
        self.api_key = (api_key or os.getenv("GOOGLE_SHEETS_API_KEY") or "").strip()
        self.access_token = (access_token or os.getenv("GOOGLE_ACCESS_TOKEN") or "").strip()
        self.credentials = credentials
        self.metadata_ttl_seconds = metadata_ttl_seconds
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._token_request: Optional[Request] = None
        self._titles: Optional[List[str]] = None
        self._titles_loaded_at = 0.0
        if not self.spreadsheet_id:
            logger.warning("GOOGLE_SPREADSHEET_ID is not set.")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def _bearer_token(self) -> str:
        if self.credentials is None:
            return self.access_token
        if not self.credentials.valid:
            if self._token_request is None:
                self._token_request = Request()
            # google-auth refreshes synchronously
            await asyncio.to_thread(self.credentials.refresh, self._token_request)
            logger.info("Refreshed Google service account token")
        return self.credentials.token

    async def _auth(self) -> tuple[Dict[str, str], Dict[str, str]]:
        headers: Dict[str, str] = {}
        params: Dict[str, str] = {}
        token = await self._bearer_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif self.api_key:
            params["key"] = self.api_key
        return headers, params

    async def _get_json(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        client = await self._get_client()
        headers, auth_params = await self._auth()
        try:
            response = await client.get(url, params={**params, **auth_params}, headers=headers or None)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Sheets API error: {e.response.status_code} {e.response.text}")
            raise

    async def list_sheets(self) -> List[Sheet]:
        now = time.monotonic()
        if self._titles is None or now - self._titles_loaded_at > self.metadata_ttl_seconds:
            data = await self._get_json(
                f"{SHEETS_API_URL}/{self.spreadsheet_id}",
                {"fields": "sheets.properties.title"},
            )
            self._titles = [
                sheet.get("properties", {}).get("title", "")
                for sheet in data.get("sheets", [])
            ]
            self._titles_loaded_at = now
            logger.info("Loaded spreadsheet info: %d sheets", len(self._titles))
        return [GoogleSheet(self, title) for title in self._titles]

    async def fetch_values(self, title: str) -> List[List[str]]:
        range_name = "'" + title.replace("'", "''") + "'"
        data = await self._get_json(
            f"{SHEETS_API_URL}/{self.spreadsheet_id}/values/{quote(range_name, safe='')}",
            {
                "majorDimension": "ROWS",
                "valueRenderOption": "FORMATTED_VALUE",
            },
        )
        return [[str(cell) for cell in row] for row in data.get("values", [])]

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
