"""Live workout session bookkeeping.

The machine has two states, idle and active. Ending a session emits a
``Workout`` record and always returns the machine to idle, whether or not
the record could be written.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from healthbridge.domains.health.domain_logic.models import (
    ActivityType,
    Workout,
    local_now,
)

logger = logging.getLogger(__name__)

WorkoutWriter = Callable[[Workout], Awaitable[bool]]


class WorkoutSessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class ActiveSession:
    start_time: datetime
    activity_type: ActivityType


class WorkoutSessionStateMachine:
    """Tracks at most one live workout session.

    Usage::

        sessions = WorkoutSessionStateMachine(service.write_health_data, data_origin="MyApp")
        await sessions.start(ActivityType.RUNNING)
        workout = await sessions.end()

    A single lock guards the session value. ``end`` swaps the active session
    out under the lock before writing, so two concurrent ``end`` calls can
    never persist the same session twice.
    """

    def __init__(
        self,
        write_workout: WorkoutWriter,
        *,
        data_origin: str,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._write_workout = write_workout
        self._data_origin = data_origin
        self._clock = clock
        self._lock = threading.Lock()
        self._session: ActiveSession | None = None

    @property
    def state(self) -> WorkoutSessionState:
        with self._lock:
            return WorkoutSessionState.IDLE if self._session is None else WorkoutSessionState.ACTIVE

    @property
    def active_session(self) -> ActiveSession | None:
        with self._lock:
            return self._session

    def is_active(self) -> bool:
        with self._lock:
            return self._session is not None

    async def start(self, activity_type: ActivityType) -> bool:
        """Begin a session. Returns False if one is already active."""
        with self._lock:
            if self._session is not None:
                logger.info("Workout session already active; start rejected")
                return False
            self._session = ActiveSession(start_time=self._clock(), activity_type=activity_type)
            logger.info(
                "Workout session started for %s at %s",
                activity_type.value, self._session.start_time.isoformat(),
            )
            return True

    async def end(self) -> Workout | None:
        """Finish the active session and persist it as a ``Workout``.

        Returns the workout only if the write succeeded. Returns None when
        no session was active or the write failed; in every case the machine
        is idle afterwards.
        """
        with self._lock:
            session = self._session
            self._session = None
        if session is None:
            logger.info("No active workout session to end")
            return None

        end_time = self._clock()
        if end_time < session.start_time:
            end_time = session.start_time
        logger.info(
            "Ending workout session - duration %.1f minutes",
            (end_time - session.start_time).total_seconds() / 60,
        )

        workout = Workout(
            id="",
            data_origin=self._data_origin,
            activity_type=session.activity_type,
            title=session.activity_type.display_name,
            start_time=session.start_time,
            end_time=end_time,
            timestamp=session.start_time,
        )

        try:
            saved = await self._write_workout(workout)
        except Exception:
            logger.exception("Failed to save workout session")
            return None

        if not saved:
            logger.warning("Workout session ended but could not be saved")
            return None
        logger.info("Workout session ended and saved")
        return workout
