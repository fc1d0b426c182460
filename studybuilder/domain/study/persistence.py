"""Persistence collaborators - draft snapshots and study creation.

Provides file-based and in-memory draft stores for development/testing,
and in-memory and HTTP study creation clients.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import httpx

from studybuilder.domain.study.errors import SubmissionError


logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class DraftStore(Protocol):
    """Protocol for draft snapshot storage."""

    async def save_draft(self, key: str, snapshot: Dict[str, Any]) -> None:
        """Save a draft snapshot (the dict carries its own saved_at)."""
        ...

    async def load_draft(self, key: str) -> Optional[Dict[str, Any]]:
        """Load a draft snapshot, None if there is none."""
        ...

    async def delete_draft(self, key: str) -> None:
        ...


class StudyCreationClient(Protocol):
    """Protocol for the external study creation service."""

    async def create_study(self, payload: Dict[str, Any]) -> str:
        """Create a study and return its id.

        Raises:
            SubmissionError: the service rejected or failed the request
        """
        ...


def make_snapshot(payload: Dict[str, Any], revision: int = 0) -> Dict[str, Any]:
    """Wrap a draft payload with the metadata restore needs."""
    return {
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "revision": revision,
        "draft": payload,
    }


class FileDraftStore:
    """File-based draft storage for development/testing."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        return self.base_dir / f"{_SAFE_KEY.sub('_', key)}_draft.json"

    async def save_draft(self, key: str, snapshot: Dict[str, Any]) -> None:
        path = self._get_path(key)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(snapshot, f, indent=2)
        logger.debug(f"Saved draft snapshot {key}")

    async def load_draft(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._get_path(key)
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to load draft {key}: {e}")
            return None

    async def delete_draft(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()
        logger.info(f"Deleted draft {key}")

    async def list_keys(self) -> List[str]:
        return sorted(p.name[:-len("_draft.json")] for p in self.base_dir.glob("*_draft.json"))


class InMemoryDraftStore:
    """In-memory draft storage for testing."""

    def __init__(self):
        self._drafts: Dict[str, str] = {}
        self.save_count = 0

    async def save_draft(self, key: str, snapshot: Dict[str, Any]) -> None:
        # Stored as JSON so later mutation of the caller's dict cannot leak in.
        self._drafts[key] = json.dumps(snapshot)
        self.save_count += 1

    async def load_draft(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._drafts.get(key)
        return json.loads(raw) if raw is not None else None

    async def delete_draft(self, key: str) -> None:
        self._drafts.pop(key, None)


class InMemoryStudyClient:
    """Study creation stand-in that keeps submitted payloads."""

    def __init__(self):
        self.studies: Dict[str, Dict[str, Any]] = {}

    async def create_study(self, payload: Dict[str, Any]) -> str:
        study_id = f"study_{uuid.uuid4().hex[:12]}"
        self.studies[study_id] = json.loads(json.dumps(payload))
        return study_id


class HttpStudyClient:
    """Create studies through the study service's REST API.

    POST {base_url}/studies with the draft payload; the response carries
    the new study's id as ``id`` (or ``study_id``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport

    async def create_study(self, payload: Dict[str, Any]) -> str:
        url = f"{self.base_url}/studies"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self.headers)
        except httpx.TimeoutException as e:
            raise SubmissionError(f"Study creation timed out: {e}")
        except httpx.RequestError as e:
            raise SubmissionError(f"Study creation request failed: {e}")

        if response.status_code >= 400:
            raise SubmissionError(
                f"Study creation failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        study_id = data.get("id") or data.get("study_id")
        if not study_id:
            raise SubmissionError("Study creation response did not include an id", response.status_code)
        return str(study_id)
