"""HTTP client for the remote workout-storage service (/api/workouts)."""

from datetime import date
from typing import Any, Optional

import httpx
from loguru import logger

from workout_tracker.core.config import settings

RETRYABLE_STATUS = {408, 429}


class WorkoutApiError(Exception):
    """A failed call to the workout service.

    `retryable` is True for transport errors, timeouts, 408/429 and 5xx.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False):
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)


def _error_message(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if msg:
            return str(msg)
    return resp.text or default


class WorkoutApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.workout_api_base_url).rstrip("/")
        self.token = token if token is not None else settings.workout_api_token
        self.timeout = timeout if timeout is not None else settings.workout_api_timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    def _request(self, method: str, path: str, default_error: str, **kwargs) -> httpx.Response:
        try:
            with self._client() as client:
                resp = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {self.base_url}{path} failed: {e}")
            raise WorkoutApiError(str(e) or default_error, retryable=True) from e

        if resp.status_code >= 400:
            retryable = resp.status_code >= 500 or resp.status_code in RETRYABLE_STATUS
            message = _error_message(resp, default_error)
            logger.warning(f"{method} {self.base_url}{path} -> {resp.status_code}: {message}")
            raise WorkoutApiError(message, status_code=resp.status_code, retryable=retryable)
        return resp

    def create_workout(self, payload: dict) -> str:
        """Create a workout and return the service's identifier for it."""
        resp = self._request("POST", "/", "Could not create workout session", json=payload)
        body = resp.json()
        workout_id = body.get("id") if isinstance(body, dict) else body
        if workout_id is None:
            raise WorkoutApiError("Workout service returned no id", status_code=resp.status_code)
        return str(workout_id)

    def get_workout(self, workout_id: str) -> dict:
        return self._request("GET", f"/{workout_id}", "Could not load workout").json()

    def list_my_workouts(self, page: int = 0, size: int = 10) -> Any:
        return self._request(
            "GET", "/my-workouts", "Could not load workouts", params={"page": page, "size": size}
        ).json()

    def list_by_date_range(self, start_date: date, end_date: date) -> Any:
        return self._request(
            "GET",
            "/date-range",
            "Could not load workouts for date range",
            params={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
        ).json()

    def list_by_sport(self, sport_type: str) -> Any:
        return self._request(
            "GET", "/by-sport", "Could not load workouts for sport", params={"sportType": sport_type}
        ).json()

    def update_workout(self, workout_id: str, payload: dict) -> dict:
        return self._request("PUT", f"/{workout_id}", "Could not update workout", json=payload).json()

    def delete_workout(self, workout_id: str) -> bool:
        self._request("DELETE", f"/{workout_id}", "Could not delete workout")
        return True

    def get_statistics(self, start_date: date, end_date: date) -> dict:
        return self._request(
            "GET",
            "/statistics",
            "Could not load statistics",
            params={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
        ).json()


def get_workout_client() -> WorkoutApiClient:
    return WorkoutApiClient()
