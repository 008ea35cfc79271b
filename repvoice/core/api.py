"""Document store REST client with retry and rate limiting."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import requests


class APIError(RuntimeError):
    """Raised for API failures after retries."""


class DocumentStoreAPI:
    """Thin wrapper around the workout-log document store REST API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        rate_limit_delay: float = 0.0,
        max_retries: int = 3,
        timeout_seconds: int = 30,
    ) -> None:
        if not base_url:
            raise APIError("Document store base URL is not configured")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.rate_limit_delay = rate_limit_delay
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self._has_sent_request = False

    @property
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                if self.rate_limit_delay > 0 and self._has_sent_request:
                    time.sleep(self.rate_limit_delay)

                self._has_sent_request = True
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                    timeout=self.timeout_seconds,
                )
                if response.status_code in (429, 500, 502, 503, 504):
                    raise requests.HTTPError(response.text, response=response)
                response.raise_for_status()

                if not response.text:
                    return {}
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                if attempt >= self.max_retries:
                    break
                time.sleep(min(2**attempt, 8))

        raise APIError(f"API request failed for {method} {path}: {last_error}")

    def _logs_path(self, user_id: str) -> str:
        return f"/users/{user_id}/workout_logs"

    def create_log(self, user_id: str, payload: Dict[str, Any]) -> str:
        response = self._request("POST", self._logs_path(user_id), json_data=payload)
        log_id = response.get("id") if isinstance(response, dict) else None
        if not log_id:
            raise APIError("Document store did not return a log id")
        return str(log_id)

    def update_log(self, user_id: str, log_id: str, payload: Dict[str, Any]) -> Any:
        return self._request("PATCH", f"{self._logs_path(user_id)}/{log_id}", json_data=payload)

    def delete_log(self, user_id: str, log_id: str) -> Any:
        return self._request("DELETE", f"{self._logs_path(user_id)}/{log_id}")

    def get_log(self, user_id: str, log_id: str) -> Any:
        return self._request("GET", f"{self._logs_path(user_id)}/{log_id}")

    def list_logs(self, user_id: str, limit: int = 50) -> Any:
        return self._request("GET", self._logs_path(user_id), params={"orderBy": "startTime", "limit": limit})
