"""
Aadhaar verification providers.

- demo: accepts any full name of 3+ characters
- API Setu: two-step OTP flow (initiate with UID, confirm with txnId + OTP)

The UID is only forwarded to the provider, never stored.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends

from app.core.config import Settings, get_settings
from app.core.http import get_http_client

logger = logging.getLogger(__name__)


@dataclass
class AadhaarResult:
    success: bool
    full_name: Optional[str] = None
    txn_id: Optional[str] = None
    message: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success}
        if self.full_name:
            body["fullName"] = self.full_name
        if self.txn_id:
            body["txnId"] = self.txn_id
        if self.message:
            body["message"] = self.message
        return body


def demo_verify(full_name: Optional[str]) -> AadhaarResult:
    name = (full_name or "").strip()
    if len(name) < 3:
        return AadhaarResult(success=False, message="Provide a valid full name in demo mode")
    return AadhaarResult(success=True, full_name=name)


class ApiSetuClient:

    def __init__(self, init_url: Optional[str], confirm_url: Optional[str], api_key: Optional[str],
                 http_client: httpx.AsyncClient):
        self.init_url = init_url
        self.confirm_url = confirm_url
        self.api_key = api_key
        self.http_client = http_client

    async def _post(self, url: Optional[str], payload: Dict[str, Any], label: str):
        """Return (data, error message). Exactly one is None."""
        if not url or not self.api_key:
            return None, "API Setu not configured"
        try:
            res = await self.http_client.post(
                url,
                headers={"Content-Type": "application/json", "x-api-key": self.api_key},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.warning("API Setu %s request failed: %s", label, e)
            return None, str(e) or f"API Setu {label} error"
        if not res.is_success:
            return None, res.text or f"API Setu {label} error {res.status_code}"
        try:
            data = res.json()
        except ValueError:
            data = {}
        return (data if isinstance(data, dict) else {}), None

    async def initiate_otp(self, uid: Optional[str]) -> AadhaarResult:
        data, error = await self._post(self.init_url, {"uid": uid}, "init")
        if error:
            return AadhaarResult(success=False, message=error)
        if not data.get("success") or not data.get("txnId"):
            return AadhaarResult(success=False, message=data.get("message") or "API Setu init failed")
        return AadhaarResult(success=True, txn_id=data["txnId"])

    async def confirm_otp(self, txn_id: Optional[str], otp: Optional[str]) -> AadhaarResult:
        data, error = await self._post(self.confirm_url, {"txnId": txn_id, "otp": otp}, "confirm")
        if error:
            return AadhaarResult(success=False, message=error)
        if not data.get("success") or not data.get("fullName"):
            return AadhaarResult(success=False, message=data.get("message") or "API Setu confirm failed")
        return AadhaarResult(success=True, full_name=data["fullName"])


def get_apisetu_client(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> ApiSetuClient:
    return ApiSetuClient(
        settings.apisetu_aadhaar_init_url,
        settings.apisetu_aadhaar_confirm_url,
        settings.apisetu_api_key,
        http_client,
    )
