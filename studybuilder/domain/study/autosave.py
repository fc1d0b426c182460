"""Debounced draft autosave.

Every schedule() restarts a cancellable timer. When it fires, the latest
draft is written to the DraftStore. At most one flush runs at a time; a
timer that fires during a flush makes that flush run once more with the
newest draft. aclose() cancels both the timer and any in-flight flush.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from studybuilder.domain.study.errors import StudyBuilderError
from studybuilder.domain.study.models import StudyDraft
from studybuilder.domain.study.persistence import DraftStore, make_snapshot
from studybuilder.domain.study.serialization import draft_from_payload, draft_to_payload


logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY_SECONDS = 1.5
DEFAULT_DRAFT_MAX_AGE = timedelta(hours=24)


class AutosaveStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class DraftAutosaver:
    """Debounced writer of draft snapshots for one draft key."""

    def __init__(
        self,
        store: DraftStore,
        draft_key: str,
        delay_seconds: float = DEFAULT_AUTOSAVE_DELAY_SECONDS,
    ):
        self.store = store
        self.draft_key = draft_key
        self.delay_seconds = delay_seconds

        self.status = AutosaveStatus.IDLE
        self.saved_revision = 0
        self.last_error: Optional[Exception] = None

        self._latest: Optional[StudyDraft] = None
        self._revision = 0
        self._timer: Optional[asyncio.Task] = None
        self._flush_task: Optional[asyncio.Task] = None
        self._rerun = False
        self._closed = False

    @property
    def revision(self) -> int:
        """Revision of the most recently scheduled draft."""
        return self._revision

    @property
    def is_dirty(self) -> bool:
        return self._revision > self.saved_revision

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, draft: StudyDraft) -> None:
        """Record a new draft and restart the debounce timer. Needs a running loop."""
        if self._closed:
            raise RuntimeError(f"Autosaver for '{self.draft_key}' is closed")
        self._latest = draft
        self._revision += 1
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._debounce())
        if self.status != AutosaveStatus.SAVING:
            self.status = AutosaveStatus.PENDING

    async def flush(self) -> None:
        """Save the latest draft now, skipping the debounce delay."""
        if self._closed:
            return
        self._cancel_timer()
        if not self.is_dirty and not self._flush_in_flight():
            return
        await self._request_flush()

    async def aclose(self) -> None:
        """Cancel pending and in-flight work. Nothing lands after this returns."""
        self._closed = True
        tasks = [t for t in (self._timer, self._flush_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._flush_task = None
        logger.debug(f"Autosaver closed for {self.draft_key} at revision {self._revision}")

    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _flush_in_flight(self) -> bool:
        return self._flush_task is not None and not self._flush_task.done()

    def _request_flush(self) -> asyncio.Task:
        if self._flush_in_flight():
            self._rerun = True
        else:
            self._flush_task = asyncio.get_running_loop().create_task(self._run_flushes())
        return self._flush_task

    async def _debounce(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        self._timer = None
        self._request_flush()

    async def _run_flushes(self) -> None:
        while True:
            self._rerun = False
            draft, revision = self._latest, self._revision
            if draft is None or revision <= self.saved_revision:
                break

            self.status = AutosaveStatus.SAVING
            try:
                snapshot = make_snapshot(draft_to_payload(draft), revision)
                await self.store.save_draft(self.draft_key, snapshot)
            except Exception as e:
                logger.exception(f"Autosave failed for {self.draft_key} at revision {revision}")
                self.status = AutosaveStatus.ERROR
                self.last_error = e
                if self._rerun and not self._closed:
                    continue
                return

            if self._closed:
                return
            self.saved_revision = revision
            self.last_error = None
            logger.debug(f"Autosaved {self.draft_key} revision {revision}")
            if not self._rerun:
                break

        if self._timer is not None:
            self.status = AutosaveStatus.PENDING
        elif not self.is_dirty:
            self.status = AutosaveStatus.SAVED


async def restore_draft(
    store: DraftStore,
    draft_key: str,
    max_age: timedelta = DEFAULT_DRAFT_MAX_AGE,
    now: Optional[datetime] = None,
) -> Optional[StudyDraft]:
    """Load an autosaved draft, ignoring snapshots older than max_age."""
    snapshot = await store.load_draft(draft_key)
    if snapshot is None:
        return None

    try:
        saved_at = datetime.fromisoformat(snapshot["saved_at"])
        if saved_at.tzinfo is None:
            saved_at = saved_at.replace(tzinfo=timezone.utc)
        age = (now or datetime.now(timezone.utc)) - saved_at
        if age > max_age:
            logger.info(f"Ignoring draft {draft_key}: saved {age} ago")
            return None
        draft = draft_from_payload(snapshot["draft"])
    except (KeyError, TypeError, ValueError, StudyBuilderError) as e:
        logger.warning(f"Ignoring unreadable draft {draft_key}: {e}")
        return None

    logger.info(f"Restored draft {draft_key} ({len(draft.blocks)} blocks)")
    return draft
