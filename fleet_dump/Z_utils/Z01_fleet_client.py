# fleet_dump/Z_utils/Z01_fleet_client.py
"""
Fleet API client for agent policy retrieval.

Talks to the Kibana Fleet API over a pooled requests.Session and returns
policy documents as raw JSON bytes. Each document is cut out of the response
text as received; it is never decoded and encoded again.

Endpoints:
    GET /api/fleet/agent_policies/{id}                      -> {"item": {...}}
    GET /api/fleet/agent_policies?full=true&page=N&perPage=M -> {"items": [...], "total": T}

Requests are not retried: any transport error, non-2xx status or malformed
response envelope raises FetchError straight away.

Usage:
    from fleet_dump.Z_utils.Z01_fleet_client import FleetClient

    with FleetClient.from_config(config) as client:
        raw = client.get_raw_policy("fleet-server-policy")
        everything = client.list_raw_policies()
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests

from fleet_dump.A_core.A00_logging import get_logger
from fleet_dump.A_core.A02_exceptions import FetchError
from fleet_dump.Z_utils.Z03_raw_json import split_raw

logger = get_logger(__name__)

FLEET_API = "/api/fleet"
USER_AGENT = "fleet-dump/1.0"


class FleetClient:
    """
    Minimal Fleet API client.

    Attributes:
        base_url: Kibana base URL (no trailing slash).
        timeout: Request timeout in seconds.
        per_page: Page size used when listing policies.
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        api_key: Optional[str] = None,
        ca_cert: Optional[Union[str, Path]] = None,
        verify_ssl: bool = True,
        timeout: float = 30,
        per_page: int = 20,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Kibana URL, e.g. https://127.0.0.1:5601.
            username: Basic auth user (ignored when api_key is set).
            password: Basic auth password.
            api_key: Encoded API key, sent as ``Authorization: ApiKey ...``.
            ca_cert: CA bundle used to verify the Kibana certificate.
            verify_ssl: Set False to skip certificate verification.
            timeout: Request timeout in seconds.
            per_page: Page size for list requests.
            session: Pre-built session (tests inject a mock here).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.per_page = per_page

        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
            "kbn-xsrf": "fleet-dump",
        })

        if api_key:
            self._session.headers["Authorization"] = f"ApiKey {api_key}"
        elif username:
            self._session.auth = (username, password or "")

        if ca_cert:
            self._session.verify = str(ca_cert)
        elif not verify_ssl:
            self._session.verify = False

        logger.debug(f"Fleet client initialized: base_url={self.base_url}, per_page={per_page}")

    @classmethod
    def from_config(cls, config: Any) -> "FleetClient":
        """Build a client from a DumpConfig."""
        return cls(
            base_url=config.kibana_host,
            username=config.username,
            password=config.password,
            api_key=config.api_key,
            ca_cert=config.ca_cert,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout_seconds,
            per_page=config.per_page,
        )

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """
        GET a Fleet API path and split the JSON envelope.

        Returns:
            Raw JSON text of each member of the response object.

        Raises:
            FetchError: On transport failure, non-2xx status or non-object JSON.
        """
        url = f"{self.base_url}{FLEET_API}{path}"
        logger.debug(f"GET {url} params={params}")

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Fleet request failed: {e}")
            raise FetchError(f"Request failed: {e}", url=url) from e

        if not 200 <= response.status_code < 300:
            logger.warning(f"Fleet returned HTTP {response.status_code} for {url}")
            raise FetchError(
                f"Unexpected response: {response.text[:200]}",
                status_code=response.status_code,
                url=url,
            )

        try:
            body = split_raw(response.content.decode("utf-8"))
        except ValueError as e:
            raise FetchError(
                f"Invalid JSON response: {e}",
                status_code=response.status_code,
                url=url,
            ) from e

        if not isinstance(body, dict):
            raise FetchError(
                "Expected a JSON object in response",
                status_code=response.status_code,
                url=url,
            )
        return body

    def get_raw_policy(self, policy_id: str) -> bytes:
        """
        Fetch one agent policy by id.

        Returns:
            The policy document as JSON bytes.
        """
        path = f"/agent_policies/{quote(policy_id, safe='')}"
        body = self._get(path)

        if "item" not in body:
            raise FetchError(f"Response has no 'item' for agent policy {policy_id}")
        return body["item"].encode("utf-8")

    def list_raw_policies(self) -> List[bytes]:
        """
        Fetch every agent policy, following pagination.

        Returns:
            Policy documents as JSON bytes, in the order the API returned them.
        """
        items: List[bytes] = []
        page = 1

        while True:
            body = self._get(
                "/agent_policies",
                params={"full": "true", "page": page, "perPage": self.per_page},
            )
            try:
                page_items = split_raw(body.get("items", ""))
            except ValueError:
                page_items = None
            if not isinstance(page_items, list):
                raise FetchError(f"Response has no 'items' list (page {page})")

            items.extend(item.encode("utf-8") for item in page_items)

            total = _parse_total(body, page, default=len(items))
            if not page_items or len(items) >= total:
                break
            page += 1

        logger.debug(f"Listed {len(items)} agent policies in {page} page(s)")
        return items

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self) -> "FleetClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _parse_total(body: Dict[str, str], page: int, default: int) -> int:
    if "total" not in body:
        return default
    total = json.loads(body["total"])
    if isinstance(total, bool) or not isinstance(total, int):
        raise FetchError(f"Response 'total' is not an integer (page {page}): {body['total']}")
    return total
