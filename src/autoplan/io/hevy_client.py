"""
HTTP client for the Hevy public API.

Fetches workout history, the exercise template catalog and routines, and
creates/updates the managed routine.  Every request runs under a
RetryPolicy; routine updates may be given a stricter one by the caller.
"""

import logging
from typing import Any

import httpx

from ..core.config import HEVY_BASE_URL, HTTP_TIMEOUT_SECONDS
from ..core.models import ExerciseTemplate, RemoteRoutine, RoutinePayload, WorkoutSession
from .retry import RetryPolicy
from .serializers import (
    ValidationError,
    dict_to_exercise_template,
    dict_to_remote_routine,
    dict_to_workout_session,
    routine_payload_to_dict,
    unwrap_routine_response,
)

logger = logging.getLogger(__name__)

WORKOUTS_PAGE_SIZE = 10  # API maximum for /workouts
TEMPLATES_PAGE_SIZE = 100
ROUTINES_PAGE_SIZE = 10


class HevyClientError(Exception):
    """Base exception for Hevy client errors."""

    pass


class HevyUnavailable(HevyClientError, ConnectionError):
    """Raised when the Hevy API cannot be reached or times out."""

    pass


class HevyAPIError(HevyClientError):
    """Raised when the Hevy API returns an error response."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class HevyClient:
    """
    Async client for the Hevy API.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = HEVY_BASE_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        retry: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Hevy API key, sent as the ``api-key`` header
            base_url: API root (e.g. "https://api.hevyapp.com/v1")
            timeout: Request timeout in seconds
            retry: Policy applied to every request (transient errors only)
            transport: Optional httpx transport, for tests
        """
        if not api_key:
            raise ValueError("A Hevy API key is required")
        self._base_url = base_url.rstrip("/")
        self.retry = retry or RetryPolicy()
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={"api-key": api_key, "Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "HevyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Perform one request and decode the JSON body.

        Raises:
            HevyUnavailable: If the API is not reachable or times out
            HevyAPIError: If the API returns a non-2xx response
        """
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.error("Hevy API timeout: %s %s", method, path)
            raise HevyUnavailable(f"Hevy API request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            logger.error("Hevy API unavailable: %s", e)
            raise HevyUnavailable(f"Hevy API is not available at {self._base_url}") from e

        if not response.is_success:
            logger.error("Hevy API error: %s - %s", response.status_code, response.text)
            raise HevyAPIError(
                f"{method} {path} failed: {response.status_code} {response.text}",
                response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry: RetryPolicy | None = None,
    ) -> Any:
        policy = retry or self.retry
        return await policy.call(self._send, method, path, params=params, json=json)

    async def _paginate(
        self,
        path: str,
        key: str,
        page_size: int,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Walk pages until ``page_count`` is reached, a page is empty, or ``limit`` items exist."""
        items: list[dict[str, Any]] = []
        page, page_count = 1, 1
        while page <= page_count:
            data = await self._request("GET", path, params={"page": page, "pageSize": page_size})
            batch = data.get(key) if isinstance(data, dict) else None
            if not isinstance(batch, list):
                raise HevyAPIError(f"Expected a list under '{key}' from {path}", 200)
            if not batch:
                break
            items.extend(batch)
            page_count = int(data.get("page_count") or 1)
            logger.debug("Fetched %s page %d/%d (%d items)", path, page, page_count, len(batch))
            if limit is not None and len(items) >= limit:
                return items[:limit]
            page += 1
        return items

    async def list_workouts(self, max_sessions: int = 30) -> list[WorkoutSession]:
        """
        Fetch the most recent workouts, newest first.

        Workouts that fail validation are skipped with a warning.

        Args:
            max_sessions: Upper bound on workouts fetched

        Returns:
            List of WorkoutSession
        """
        raw = await self._paginate("/workouts", "workouts", WORKOUTS_PAGE_SIZE, limit=max_sessions)
        sessions: list[WorkoutSession] = []
        for item in raw:
            try:
                sessions.append(dict_to_workout_session(item))
            except ValidationError as e:
                logger.warning("Skipping invalid workout: %s", e)
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        logger.info("Fetched %d workouts", len(sessions))
        return sessions

    async def list_exercise_templates(self) -> list[ExerciseTemplate]:
        """Fetch the full exercise template catalog."""
        raw = await self._paginate("/exercise_templates", "exercise_templates", TEMPLATES_PAGE_SIZE)
        templates: list[ExerciseTemplate] = []
        for item in raw:
            try:
                templates.append(dict_to_exercise_template(item))
            except ValidationError as e:
                logger.warning("Skipping invalid exercise template: %s", e)
        logger.info("Fetched %d exercise templates", len(templates))
        return templates

    async def list_routines(self) -> list[RemoteRoutine]:
        """Fetch every routine on the account; entries without id/title are dropped."""
        raw = await self._paginate("/routines", "routines", ROUTINES_PAGE_SIZE)
        routines: list[RemoteRoutine] = []
        for item in raw:
            try:
                routines.append(dict_to_remote_routine(item))
            except ValidationError as e:
                logger.warning("Filtered out invalid routine: %s", e)
        logger.info("Fetched %d routines", len(routines))
        return routines

    async def create_routine(self, payload: RoutinePayload) -> RemoteRoutine:
        """
        Create a routine.

        Returns:
            The routine as stored remotely
        """
        data = await self._request("POST", "/routines", json=routine_payload_to_dict(payload))
        routine = dict_to_remote_routine(unwrap_routine_response(data))
        logger.info("Routine created: %s (ID: %s)", routine.title, routine.id)
        return routine

    async def update_routine(
        self,
        routine_id: str,
        payload: RoutinePayload,
        retry: RetryPolicy | None = None,
    ) -> RemoteRoutine:
        """
        Replace the content of an existing routine.

        Args:
            routine_id: Remote routine id
            payload: New routine content
            retry: Policy for this call (defaults to the client's policy)

        Returns:
            The routine as stored remotely
        """
        data = await self._request(
            "PUT", f"/routines/{routine_id}", json=routine_payload_to_dict(payload), retry=retry,
        )
        body = unwrap_routine_response(data)
        body.setdefault("id", routine_id)
        body.setdefault("title", payload.title)
        routine = dict_to_remote_routine(body)
        logger.info("Routine updated: %s (ID: %s)", routine.title, routine.id)
        return routine
