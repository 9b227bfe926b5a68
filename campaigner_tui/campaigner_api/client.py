# campaigner_tui/campaigner_api/client.py
#
#
# Imports
import asyncio
import json
import logging
from typing import Optional, Dict, Any, List
#
# 3rd-party Libraries
import httpx
#
# Local Imports
from .exceptions import (
    APIConnectionError, APIRequestError, APIResponseError, APITimeoutError, AuthenticationError, NotFoundError
)
from .schemas import CreditUsageResponse, Record, normalize_campaigns, normalize_conversations
#
########################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINTS: Dict[str, str] = {
    "conversations": "/api/conversations/",
    "campaigns": "/api/campaigns/",
    "credits": "/api/credits/usage",
    "dashboard": "/api/dashboard/stats",
}


class CampaignerAPIClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        request_deadline: Optional[float] = None,
        endpoints: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        # Caller-side deadline wrapped around every request; falls back to the socket timeout.
        self.request_deadline = request_deadline
        self.endpoints = {**DEFAULT_ENDPOINTS, **(endpoints or {})}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def set_token(self, token: Optional[str]) -> None:
        """Swap the bearer token, updating the live client's header if one exists."""
        self.token = token
        if self._client is not None and not self._client.is_closed:
            if token:
                self._client.headers["Authorization"] = f"Bearer {token}"
            else:
                self._client.headers.pop("Authorization", None)

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _collection_path(self, collection: str) -> str:
        path = self.endpoints[collection]
        return path if path.endswith("/") else f"{path}/"

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        client = await self._get_client()
        url = f"{self.base_url}{endpoint}"
        deadline = self.request_deadline or self.timeout

        try:
            response = await asyncio.wait_for(
                client.request(method, endpoint, params=params, json=json_body),
                timeout=deadline,
            )
            response.raise_for_status()  # Raises HTTPStatusError for 4xx/5xx
        except asyncio.TimeoutError:
            raise APITimeoutError(f"Request to {url} exceeded the {deadline}s deadline")
        except httpx.TimeoutException as e:
            raise APITimeoutError(f"Timed out talking to {url}: {e}")
        except httpx.HTTPStatusError as e:
            error_detail = str(e)
            response_data = None
            try:
                response_data = e.response.json()
                if isinstance(response_data, dict) and "detail" in response_data:
                    if isinstance(response_data["detail"], list) and response_data["detail"]:
                        # Pydantic validation error format
                        first = response_data["detail"][0]
                        error_detail = f"Validation Error: {first.get('msg', '')} for field '{'.'.join(map(str, first.get('loc', [])))}'"
                    elif isinstance(response_data["detail"], str):
                        error_detail = response_data["detail"]
            except ValueError:
                pass  # Body is not JSON; keep the generic message

            status = e.response.status_code
            if status == 401:
                raise AuthenticationError(f"Authentication failed: {error_detail}", status_code=status)
            if status == 404:
                raise NotFoundError(error_detail, response_data=response_data)
            if status == 422:  # Unprocessable Entity (Pydantic validation error)
                raise APIRequestError(f"Validation Error: {error_detail}")
            raise APIResponseError(status, error_detail, response_data=response_data)
        except httpx.RequestError as e:  # ConnectError, ReadError, DNS failures, etc.
            raise APIConnectionError(f"Connection error to {url}: {e}")

        if response.status_code == 204 or not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response.text
        try:
            return response.json()
        except json.JSONDecodeError:
            raise APIResponseError(response.status_code, "Failed to decode JSON response",
                                   response_data={"raw_text": response.text})

    # --- Collections ---

    async def list_conversations(self) -> List[Record]:
        payload = await self._request("GET", self._collection_path("conversations"),
                                      params={"load_messages": "false"})
        return normalize_conversations(payload)

    async def list_campaigns(self) -> List[Record]:
        payload = await self._request("GET", self._collection_path("campaigns"))
        return normalize_campaigns(payload)

    # --- Detail loaders ---

    async def get_conversation(self, conversation_id: int) -> Dict[str, Any]:
        if not conversation_id or int(conversation_id) <= 0:
            raise APIRequestError("Conversation ID is required")
        try:
            return await self._request("GET", f"{self._collection_path('conversations')}{int(conversation_id)}")
        except NotFoundError:
            raise NotFoundError("Conversation not found")

    async def get_campaign(self, campaign_id: int) -> Dict[str, Any]:
        if not campaign_id or int(campaign_id) <= 0:
            raise APIRequestError("Campaign ID is required")
        try:
            return await self._request("GET", f"{self._collection_path('campaigns')}{int(campaign_id)}")
        except NotFoundError:
            raise NotFoundError("Campaign not found")

    # --- Destructive mutations ---

    async def delete_conversation(self, conversation_id: int) -> None:
        await self._request("DELETE", f"{self._collection_path('conversations')}{int(conversation_id)}")

    async def delete_campaign(self, campaign_id: int) -> None:
        await self._request("DELETE", f"{self._collection_path('campaigns')}{int(campaign_id)}")

    # --- Aggregate documents ---

    async def get_credits(self) -> Dict[str, Any]:
        payload = await self._request("GET", self.endpoints["credits"])
        return CreditUsageResponse.model_validate(payload or {}).model_dump()

    async def get_dashboard(self) -> Dict[str, Any]:
        payload = await self._request("GET", self.endpoints["dashboard"])
        return payload if isinstance(payload, dict) else {"data": payload}

#
# End of client.py
########################################################################################################################
