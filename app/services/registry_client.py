"""
Gridlines company registry client.

Looks companies up in the MCA registry by CIN or PAN. The server-held API key
never leaves this process.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends

from app.core.config import Settings, get_settings
from app.core.http import get_http_client

logger = logging.getLogger(__name__)

FETCH_COMPANY_PATH = "/mca-api/fetch-company"

PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
CIN_RE = re.compile(r"^[UL][0-9A-Z]{20}$")


class RegistryNotConfigured(Exception):
    pass


@dataclass
class RegistryResult:
    ok: bool
    status_code: int
    data: Any


def detect_id_type(identifier: str) -> str:
    """Lightweight PAN/CIN heuristic: 'PAN', 'CIN' or 'UNKNOWN'."""
    value = identifier.strip().upper()
    if PAN_RE.match(value):
        return "PAN"
    if CIN_RE.match(value) or len(value) >= 15:
        return "CIN"
    return "UNKNOWN"


class GridlinesClient:

    def __init__(self, base_url: str, api_key: Optional[str], http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_company(self, cin: Optional[str] = None, pan: Optional[str] = None) -> RegistryResult:
        """
        POST the identifier to fetch-company. CIN wins when both are given.

        Raises RegistryNotConfigured without an API key, and lets
        httpx.HTTPError through on transport failure.
        """
        if not self.api_key:
            raise RegistryNotConfigured("Missing GRIDLINES_API_KEY env var")

        payload: Dict[str, str] = {"cin": cin} if cin else {"pan": pan}
        res = await self.http_client.post(
            f"{self.base_url}{FETCH_COMPANY_PATH}",
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "X-API-Key": self.api_key,
            },
            json=payload,
        )
        try:
            data = res.json()
        except ValueError:
            data = {}
        if not res.is_success:
            logger.info("Gridlines returned %s for %s", res.status_code, list(payload))
        return RegistryResult(ok=res.is_success, status_code=res.status_code, data=data)


def get_registry_client(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> GridlinesClient:
    return GridlinesClient(settings.gridlines_base_url, settings.gridlines_api_key, http_client)
