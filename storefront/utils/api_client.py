# storefront/utils/api_client.py
import httpx
import json
import logging
from typing import Any, Optional
from urllib.parse import quote
from pydantic import ValidationError as PydanticValidationError

from storefront.config import settings
from storefront.errors import ApiError
from storefront.schemas.catalog import Perfume
from storefront.schemas.order import PendingOrder
from storefront.utils.auth import AuthSession

logger = logging.getLogger(__name__)


def _safe_json(text: str) -> Any:
    try:
        return json.loads(text) if text else None
    except ValueError:
        return None


def error_message(response: httpx.Response) -> str:
    # Prefer the backend's own message, then the raw body, then the status
    data = _safe_json(response.text)
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        if msg:
            return str(msg)
    return response.text or f"HTTP {response.status_code}"


class StorefrontApiClient:
    def __init__(self, api_url: str = None, *, auth: Optional[AuthSession] = None,
                 timeout: float = None, transport: httpx.AsyncBaseTransport = None):
        # Initialize base URL and transport options
        self.api_base = f"{(api_url or settings.API_URL).rstrip('/')}/api"
        self.auth = auth
        self.timeout = settings.ORDER_API_TIMEOUT_SECONDS if timeout is None else timeout
        self.transport = transport

    async def request(self, method: str, path: str, *, json_body: Any = None, auth: bool = False) -> Any:
        """Generic JSON call; raises ApiError on transport failures and non-2xx responses."""
        url = f"{self.api_base}{path}"
        headers = {"Content-Type": "application/json"}
        if auth and self.auth is not None:
            headers.update(self.auth.auth_headers())

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(method, url, json=json_body, headers=headers)
            except httpx.TimeoutException as e:
                logger.error(f"{method} {path} timed out: {e}")
                raise ApiError("The server did not respond in time. Please try again.") from e
            except httpx.RequestError as e:
                logger.error(f"{method} {path} failed: {e}")
                raise ApiError("Could not reach the server. Please try again.") from e

        if response.is_error:
            message = error_message(response)
            logger.error(f"{method} {path} returned {response.status_code}: {message[:500]}")
            raise ApiError(message, status_code=response.status_code)

        return _safe_json(response.text)

    async def get_perfume(self, slug: str) -> Perfume:
        data = await self.request("GET", f"/perfumes/{quote(slug, safe='')}")
        if not isinstance(data, dict):
            raise ApiError(f"Perfume {slug!r} not found", status_code=404)
        try:
            return Perfume.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Malformed catalog document for {slug}: {e}")
            raise ApiError(f"Perfume {slug!r} could not be read") from e

    async def create_order(self, order: PendingOrder) -> str:
        # Submit the full pending order; the backend answers with its id
        data = await self.request("POST", "/orders", json_body=order.to_json(), auth=True)
        order_id = data.get("id") if isinstance(data, dict) else None
        if not order_id:
            raise ApiError("The order backend did not return an order id.")
        return str(order_id)
