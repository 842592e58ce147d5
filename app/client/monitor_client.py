"""
Bridge Monitor Python SDK — Monitor Client

Reads bridge status, queue and error pages, and issues the admin tasks
(remove an error category, restart processing).

Auth:
- Header: x-api-key = one entry from BRIDGEMON_API_KEYS (env)

Env:
- BRIDGEMON_BASE_URL  (default: http://localhost:8000)
- BRIDGEMON_API_KEYS  ← JSON list or CSV of admin keys; first one is used by default

Python: 3.8+ (no third-party HTTP deps, uses urllib)
"""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional

from dotenv import load_dotenv
load_dotenv()

DEFAULT_BASE_URL = os.getenv("BRIDGEMON_BASE_URL", "http://localhost:8000")


def _pick_admin_key() -> Optional[str]:
    """
    Accepts:
      - BRIDGEMON_API_KEYS='["k1","k2"]'
      - BRIDGEMON_API_KEYS='k1,k2'
      - BRIDGEMON_API_KEYS='k1'
    Uses the *first* key by default.
    """
    raw = os.getenv("BRIDGEMON_API_KEYS")
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, list) and parsed:
            return str(parsed[0])
        if isinstance(parsed, str) and parsed.strip():
            return parsed.strip()
    except ValueError:
        # CSV fallback
        parts = [p.strip() for p in raw.split(",") if p.strip()]
        if parts:
            return parts[0]
    return None


class MonitorClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        admin_key: Optional[str] = None,
        client_id: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.admin_key = admin_key or _pick_admin_key()
        # identifies this client's activity/log cursors on the server
        self.client_id = client_id

    def _request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[dict] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not self.admin_key:
            raise RuntimeError("Missing admin key. Set BRIDGEMON_API_KEYS or pass admin_key.")
        url = self.base_url + (path if path.startswith("/") else f"/{path}")
        if query:
            params = {k: v for k, v in query.items() if v is not None}
            if params:
                url += "?" + urllib.parse.urlencode(params)

        body: Optional[bytes] = None
        hdrs: Dict[str, str] = {"accept": "application/json", "x-api-key": self.admin_key}
        if self.client_id:
            hdrs["x-client-id"] = self.client_id
        if data is not None:
            body = json.dumps(data).encode("utf-8")
            hdrs["content-type"] = "application/json"

        req = urllib.request.Request(url, data=body, headers=hdrs, method=method.upper())
        try:
            with urllib.request.urlopen(req, timeout=30) as resp:
                raw = resp.read().decode()
                if not raw:
                    return {}
                return json.loads(raw)
        except urllib.error.HTTPError as e:
            try:
                err = json.loads(e.read().decode() or "{}")
            except ValueError:
                err = {"status": e.code, "message": e.reason}
            raise RuntimeError(f"HTTP {e.code} {e.reason}: {err}") from None
        except urllib.error.URLError as e:
            raise RuntimeError(f"Connection error: {e}") from None

    # -------- Status --------

    def snapshot(self) -> dict:
        return self._request("GET", "/ui/snapshot")

    def updates(self) -> dict:
        return self._request("GET", "/ui/updates")

    def activity(self) -> dict:
        """New activity since this client's last call, or {} when there is none."""
        return self._request("GET", "/ui/activity")

    def bridge_log(self, bridge: str) -> dict:
        name = urllib.parse.quote(bridge, safe="")
        return self._request("GET", f"/ui/log/{name}")

    # -------- Paged listings --------

    def queue(self, page: Optional[int] = None, size: Optional[int] = None) -> dict:
        return self._request("GET", "/ui/queue", query={"page": page, "size": size})

    def errors(self, page: Optional[int] = None, size: Optional[int] = None) -> dict:
        return self._request("GET", "/ui/error", query={"page": page, "size": size})

    # -------- Tasks --------

    def remove_errors(self, error: str) -> dict:
        return self._request("POST", "/ui/task/remove", data={"error": error})

    def restart(self) -> dict:
        return self._request("POST", "/ui/task/restart", data={})

    def about(self) -> dict:
        return self._request("GET", "/ui/about")


__all__ = ["MonitorClient"]
