"""
Routine synchronisation with the remote routine store.

Exactly one managed routine is kept on the account: it is found by its
title marker, updated in place when its id is trusted, and created
otherwise.  An update never falls back to a create, so a flaky API can
not leave duplicate managed routines behind.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, Sequence

from ..io.retry import RetryPolicy, retry_any
from .config import AutoplanConfig
from .models import RemoteRoutine, RoutinePayload
from .routine_builder import is_managed_title

logger = logging.getLogger(__name__)


@dataclass
class SyncOutcome:
    """What the synchronizer wrote."""

    routine: RemoteRoutine
    payload: RoutinePayload
    created: bool


class RoutineSyncError(Exception):
    """Raised when the managed routine could not be written."""

    pass


class RoutineStore(Protocol):
    """Remote routine operations used by the synchronizer."""

    async def list_routines(self) -> list[RemoteRoutine]: ...

    async def create_routine(self, payload: RoutinePayload) -> RemoteRoutine: ...

    async def update_routine(
        self, routine_id: str, payload: RoutinePayload, retry: RetryPolicy | None = None,
    ) -> RemoteRoutine: ...


class RoutineCacheStore(Protocol):
    """Local routine cache used as fallback and trust anchor."""

    def load(self) -> list[RemoteRoutine]: ...

    def save(self, routines: list[RemoteRoutine]) -> None: ...

    def ids(self) -> set[str]: ...


class RoutineSynchronizer:
    """
    Writes a routine payload to the remote store.

    Steps: discover the routine list (falling back to the cache), identify
    the managed routine, create or update it, rebuild once with relaxed
    filters if the stored routine came back too short, then refresh the
    cache.
    """

    def __init__(
        self,
        client: RoutineStore,
        cache: RoutineCacheStore,
        config: AutoplanConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.cache = cache
        self.config = config or AutoplanConfig()
        self.update_policy = RetryPolicy(
            max_attempts=self.config.retry_max_attempts,
            base_delay=self.config.retry_base_delay,
            retry_on=retry_any,
            sleep=sleep,
        )

    async def discover(self) -> list[RemoteRoutine]:
        """
        List remote routines and refresh the cache with them.

        Falls back to the cached list when the remote list fails, and to an
        empty list when both are unavailable.
        """
        try:
            routines = await self.client.list_routines()
        except Exception as e:
            logger.warning("Failed to list routines, falling back to cache: %s", e)
            cached = self.cache.load()
            if not cached:
                logger.warning("No cached routines either; a new routine will be created")
            return cached
        self.cache.save(routines)
        return routines

    def identify(self, routines: Sequence[RemoteRoutine], trusted_ids: set[str]) -> RemoteRoutine | None:
        """
        Find the managed routine among *routines*.

        A routine whose id is not in *trusted_ids* (the cache contents from
        before discovery) is treated as unknown, so it is not updated.
        """
        marker = self.config.managed_title_marker
        managed = [r for r in routines if is_managed_title(r.title, marker)]
        if not managed:
            logger.info("No managed routine found")
            return None
        trusted = [r for r in managed if r.id in trusted_ids]
        for r in managed:
            if r.id not in trusted_ids:
                logger.warning("Routine %s (%s) is not in the local cache; not trusting it", r.id, r.title)
        if not trusted:
            return None
        if len(trusted) > 1:
            logger.warning("Found %d managed routines; updating the most recent", len(trusted))
            trusted.sort(key=lambda r: r.updated_at.timestamp() if r.updated_at else 0.0, reverse=True)
        routine = trusted[0]
        logger.info("Existing managed routine: %s (ID: %s)", routine.title, routine.id)
        return routine

    async def _update(self, routine_id: str, payload: RoutinePayload) -> RemoteRoutine:
        try:
            return await self.client.update_routine(routine_id, payload, retry=self.update_policy)
        except Exception as e:
            raise RoutineSyncError(
                f"Failed to update routine (ID: {routine_id}) after "
                f"{self.update_policy.max_attempts} attempts: {e}"
            ) from e

    async def sync(
        self,
        payload: RoutinePayload,
        split: str,
        rebuild: Callable[[], RoutinePayload] | None = None,
    ) -> SyncOutcome:
        """
        Create or update the managed routine.

        Args:
            payload: Routine content to write
            split: Split the payload was built for
            rebuild: Builds a replacement payload with relaxed selection;
                called at most once if the stored routine is too short

        Returns:
            SyncOutcome with the stored routine and the payload last sent

        Raises:
            RoutineSyncError: If the update fails after all attempts
        """
        trusted_ids = self.cache.ids()
        routines = await self.discover()
        existing = self.identify(routines, trusted_ids)

        if existing is not None:
            logger.info("Updating routine %s", existing.id)
            routine = await self._update(existing.id, payload)
        else:
            logger.info("Creating new routine: %s", payload.title)
            routine = await self.client.create_routine(payload)

        shape = self.config.shape_for(split)
        count = routine.exercise_count or len(payload.exercises)
        if count < shape.min_entries and split != "Cardio" and rebuild is not None:
            logger.warning(
                "Routine has only %d exercises (minimum %d); retrying with relaxed filters",
                count, shape.min_entries,
            )
            payload = rebuild()
            routine = await self._update(routine.id, payload)
            count = routine.exercise_count or len(payload.exercises)
            if count < shape.min_entries:
                logger.warning("Routine still has only %d exercises after relaxing filters", count)

        return SyncOutcome(routine=routine, payload=payload, created=existing is None)

    async def refresh(self) -> list[RemoteRoutine]:
        """
        Re-fetch the routine list into the cache.

        Best effort: failures are logged and the current cache is returned.
        """
        try:
            routines = await self.client.list_routines()
            self.cache.save(routines)
        except Exception as e:
            logger.warning("Failed to refresh routines: %s", e)
            return self.cache.load()
        logger.info("Refreshed routine cache (%d routines)", len(routines))
        return routines
