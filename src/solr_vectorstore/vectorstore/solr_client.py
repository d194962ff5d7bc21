import logging
import os
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx
from dotenv import load_dotenv

from .errors import EngineIOError

load_dotenv(override=True)

logger = logging.getLogger(__name__)

SOLR_PATH = "solr/"
CONNECT_TIMEOUT_SEC = 10.0
SOCKET_TIMEOUT_SEC = 60.0


def normalize_solr_url(url: str) -> str:
    """Ensure the base URL ends with ``/solr/``.

    http://localhost:8983       -> http://localhost:8983/solr/
    http://localhost:8983/solr  -> http://localhost:8983/solr/
    """
    if not url.endswith("/"):
        url = url + "/"
    if "/" + SOLR_PATH not in url:
        url = url + SOLR_PATH
    return url


class SolrClient:
    """Thin JSON-over-HTTP client for the Solr endpoints the vector store needs.

    One pooled ``httpx.Client`` is shared by all calls, so a single instance
    can serve concurrent requests.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[httpx.Timeout] = None,
    ) -> None:
        self.base_url = normalize_solr_url(base_url)
        self._http = http_client or httpx.Client(
            timeout=timeout or httpx.Timeout(SOCKET_TIMEOUT_SEC, connect=CONNECT_TIMEOUT_SEC),
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SolrClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _url(self, collection: str, handler: str) -> str:
        return f"{self.base_url}{collection}/{handler}"

    def _send(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise EngineIOError(f"Solr request to {url} failed: {e}") from e

        if resp.status_code >= 400:
            detail = resp.text[:500]
            try:
                detail = resp.json().get("error", {}).get("msg", detail)
            except (ValueError, AttributeError):
                pass
            raise EngineIOError(
                f"Solr returned HTTP {resp.status_code} for {url}: {detail}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise EngineIOError(f"Solr returned a non-JSON body for {url}") from e
        if not isinstance(payload, dict):
            raise EngineIOError(f"Unexpected Solr response shape for {url}")
        return payload

    def _update(self, collection: str, body: Any) -> Dict[str, Any]:
        return self._send(
            "POST",
            self._url(collection, "update"),
            params={"wt": "json"},
            json=body,
        )

    def add(self, collection: str, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Bulk write; documents become visible after ``commit``."""
        return self._update(collection, records)

    def commit(self, collection: str) -> Dict[str, Any]:
        return self._update(collection, {"commit": {}})

    def delete_by_id(self, collection: str, ids: Sequence[str]) -> Dict[str, Any]:
        return self._update(collection, {"delete": list(ids)})

    def query(
        self,
        collection: str,
        q: str,
        *,
        fields: Sequence[str] = (),
        rows: Optional[int] = None,
        filters: Sequence[str] = (),
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Run a query against ``/select`` and return ``response.docs``.

        Always sent as a form-encoded POST: a 1536-dim vector literal does not
        fit in a query string.
        """
        params: Dict[str, Any] = {"q": q, "wt": "json"}
        if fields:
            params["fl"] = ",".join(fields)
        if rows is not None:
            params["rows"] = str(rows)
        if filters:
            # list values are sent as repeated fq parameters
            params["fq"] = list(filters)
        for key, value in (extra_params or {}).items():
            params[key] = str(value)

        payload = self._send("POST", self._url(collection, "select"), data=params)
        response = payload.get("response")
        if not isinstance(response, dict):
            raise EngineIOError("Solr select response has no 'response' section")
        return list(response.get("docs") or [])

    def ping(self, collection: str) -> Dict[str, Any]:
        return self._send("GET", self._url(collection, "admin/ping"), params={"wt": "json"})


def get_solr_client(
    url: Optional[str] = None,
    collection: Optional[str] = None,
    wait_ready: bool = False,
    retries: int = 10,
    backoff_sec: float = 1.0,
) -> SolrClient:
    """Create a Solr client using env defaults if not provided and optionally wait for readiness.

    Env overrides:
      - SOLR_URL (default http://localhost:8983)
      - SOLR_COLLECTION (default books), only used for the readiness ping
    """
    url = url or os.environ.get("SOLR_URL", "http://localhost:8983")
    client = SolrClient(url)

    if wait_ready:
        collection = collection or os.environ.get("SOLR_COLLECTION", "books")
        attempts = max(1, retries)
        for i in range(attempts):
            try:
                # A light call to verify connectivity
                client.ping(collection)
                break
            except EngineIOError:
                if i == attempts - 1:
                    raise
                logger.info("Solr not ready yet (attempt %d/%d), retrying", i + 1, attempts)
                time.sleep(backoff_sec)
    return client
