"""Named, cancellable delayed actions attached to the active session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from snackroom.core.errors import DuplicateTimerError
from snackroom.models.enums import TimerName
from snackroom.models.session import Session

logger = logging.getLogger("snackroom.timers")

TimerAction = Callable[[], Awaitable[None]]


class SessionTimers:
    """Timer table keyed by name on ``Session.timers``.

    Each timer is an ``asyncio`` task that sleeps and then runs its action.
    At most one live timer exists per name per session; a second
    ``schedule`` for the same name raises :class:`DuplicateTimerError`
    (first writer wins).  A timer removes itself from the table before its
    action runs, so the action may end the session and cancel the rest of
    the table without cancelling itself.
    """

    def schedule(
        self,
        session: Session,
        name: TimerName,
        delay: float,
        action: TimerAction,
    ) -> asyncio.Task[None]:
        """Run *action* after *delay* seconds unless cancelled first."""
        if session.timers.get(name) is not None:
            raise DuplicateTimerError(f"Timer {name} already scheduled for session {session.id}")

        task = asyncio.get_running_loop().create_task(
            self._run(session, name, max(delay, 0.0), action),
            name=f"snackroom-timer-{name}-{session.id[:8]}",
        )
        session.timers[name] = task
        logger.debug("Scheduled %s in %.2fs for session %s", name, delay, session.id)
        return task

    def schedule_at(
        self,
        session: Session,
        name: TimerName,
        when: datetime,
        action: TimerAction,
    ) -> asyncio.Task[None]:
        """Run *action* at wall-clock time *when*.

        Used for the expiry/warning pair so their fire time is fixed by
        ``session.started_at`` even if scheduling itself was delayed.
        """
        delay = (when - datetime.now(UTC)).total_seconds()
        return self.schedule(session, name, delay, action)

    def is_live(self, session: Session, name: TimerName) -> bool:
        task = session.timers.get(name)
        return task is not None and not task.done()

    def cancel(self, session: Session, *names: TimerName) -> list[TimerName]:
        """Cancel the named timers. Returns the names that were live."""
        cancelled: list[TimerName] = []
        for name in names:
            task = session.timers.pop(name, None)
            if task is not None and not task.done():
                task.cancel()
                cancelled.append(name)
        if cancelled:
            logger.debug("Cancelled %s for session %s", ", ".join(cancelled), session.id)
        return cancelled

    def cancel_all(self, session: Session) -> None:
        """Cancel every timer on *session* unconditionally."""
        for task in session.timers.values():
            if not task.done():
                task.cancel()
        session.timers.clear()

    async def _run(
        self,
        session: Session,
        name: TimerName,
        delay: float,
        action: TimerAction,
    ) -> None:
        await asyncio.sleep(delay)
        current = asyncio.current_task()
        if session.timers.get(name) is current:
            del session.timers[name]
        try:
            await action()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer %s failed for session %s", name, session.id)

