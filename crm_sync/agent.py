"""
Sync agent that mirrors a device's call log and contacts to the backend.

Cursors live in a small JSON state file so a run can resume where the last
one stopped. Every pushed call carries a uuid derived from the device id,
number and start time, so re-pushing the same entry is always skipped
server-side instead of duplicated.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol

import requests

from crm_sync.client import CrmApiError, CrmClient

logger = logging.getLogger(__name__)

CALL_UUID_NAMESPACE = uuid.UUID("5c2b7f4e-3f0a-4d5e-9b1c-6a7e8d9f0a1b")

# android.provider.CallLog.Calls.TYPE values.
ANDROID_CALL_TYPES = {1: "incoming", 2: "outgoing", 3: "missed"}

DEFAULT_BATCH_SIZE = 100
DEFAULT_SYNC_INTERVAL_SECONDS = 3600


def _parse_time(value) -> datetime:
    if isinstance(value, (int, float)):
        # Device call logs store epoch milliseconds.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def call_uuid(device_id: str, phone_number: str, start_time: datetime) -> str:
    key = f"{device_id}|{phone_number}|{start_time.astimezone(timezone.utc).isoformat()}"
    return str(uuid.uuid5(CALL_UUID_NAMESPACE, key))


@dataclass
class CallLogEntry:
    phone_number: str
    direction: str
    start_time: datetime
    duration: int = 0
    uuid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "CallLogEntry":
        direction = data.get("direction", data.get("type"))
        if isinstance(direction, int):
            direction = ANDROID_CALL_TYPES.get(direction, str(direction))
        return cls(
            phone_number=str(data.get("phone_number") or data.get("number") or ""),
            direction=str(direction or ""),
            start_time=_parse_time(data.get("start_time", data.get("date"))),
            duration=int(data.get("duration") or 0),
            uuid=data.get("uuid"),
        )

    def to_payload(self, device_id: str) -> dict:
        return {
            "uuid": self.uuid or call_uuid(device_id, self.phone_number, self.start_time),
            "phone_number": self.phone_number,
            "direction": self.direction,
            "start_time": self.start_time.isoformat(),
            "duration": self.duration,
        }


class CallLogSource(Protocol):
    """Where the agent reads the device's call log and address book from."""

    def read_calls(self, since: Optional[datetime]) -> list[CallLogEntry]:
        ...

    def read_contacts(self) -> list[dict]:
        ...


@dataclass
class JsonExportSource:
    """
    Reads a device export shaped like ``{"calls": [...], "contacts": [...]}``.

    Calls may use the backend field names or the Android ones
    (``number``, ``type``, ``date`` in epoch milliseconds).
    """

    path: str

    def _load(self) -> dict:
        export_path = Path(self.path)
        if not export_path.exists():
            return {}
        with open(export_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def read_calls(self, since: Optional[datetime]) -> list[CallLogEntry]:
        entries = []
        for item in self._load().get("calls", []):
            try:
                entry = CallLogEntry.from_dict(item)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable call log entry %r: %s", item, exc)
                continue
            # Inclusive; the backend skips entries it already stored.
            if since is None or entry.start_time >= since:
                entries.append(entry)
        return sorted(entries, key=lambda e: e.start_time)

    def read_contacts(self) -> list[dict]:
        return [
            {"name": c.get("name"), "phone_number": c.get("phone_number") or c.get("number")}
            for c in self._load().get("contacts", [])
        ]


@dataclass
class SyncState:
    device_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    email: Optional[str] = None
    token: Optional[str] = None
    last_call_push: Optional[str] = None
    last_contact_pull: Optional[str] = None

    @classmethod
    def load(cls, path: Path) -> "SyncState":
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)
        tmp_path.replace(path)


@dataclass
class SyncSummary:
    calls_created: int = 0
    calls_skipped: int = 0
    call_errors: list[dict] = field(default_factory=list)
    contacts_inserted: int = 0
    contacts_existing: int = 0
    contacts_pulled: int = 0


class SyncAgent:
    def __init__(
        self,
        client: CrmClient,
        source: CallLogSource,
        state_path: str | Path,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_contacts: Optional[Callable[[list[dict]], None]] = None,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.client = client
        self.source = source
        self.state_path = Path(state_path)
        self.batch_size = batch_size
        self.on_contacts = on_contacts
        self.state = SyncState.load(self.state_path)
        if self.state.token:
            self.client.token = self.state.token

    @property
    def registered(self) -> bool:
        return bool(self.state.token)

    def register_account(self, email: str, password: str) -> dict:
        """Log the device in and remember the account for later runs."""
        user = self.client.login(email, password)
        self.state.email = user.get("email", email)
        self.state.token = self.client.token
        self.state.save(self.state_path)
        logger.info("Registered device %s for %s", self.state.device_id, self.state.email)
        return user

    def run_once(self) -> SyncSummary:
        if not self.registered:
            raise RuntimeError("No device account registered; call register_account first")
        summary = SyncSummary()
        try:
            self._push_calls(summary)
            self._push_contacts(summary)
            self._pull_contacts(summary)
        except CrmApiError as exc:
            if exc.status_code == 401:
                logger.warning("Stored token rejected; the account must be registered again")
                self.state.token = None
                self.client.token = None
                self.state.save(self.state_path)
            raise
        logger.info(
            "Sync finished: %s calls created, %s skipped, %s errors; %s contacts pulled",
            summary.calls_created,
            summary.calls_skipped,
            len(summary.call_errors),
            summary.contacts_pulled,
        )
        return summary

    def _push_calls(self, summary: SyncSummary) -> None:
        since = _parse_time(self.state.last_call_push) if self.state.last_call_push else None
        entries = self.source.read_calls(since)
        for start in range(0, len(entries), self.batch_size):
            batch = entries[start : start + self.batch_size]
            report = self.client.push_calls(
                [entry.to_payload(self.state.device_id) for entry in batch]
            )
            summary.calls_created += report.get("created", 0)
            summary.calls_skipped += report.get("skipped", 0)
            for error in report.get("errors", []):
                summary.call_errors.append({**error, "index": error["index"] + start})
            # Invalid entries stay invalid; the cursor moves past them too.
            self.state.last_call_push = batch[-1].start_time.isoformat()
            self.state.save(self.state_path)

    def _push_contacts(self, summary: SyncSummary) -> None:
        contacts = self.source.read_contacts()
        if not contacts:
            return
        report = self.client.push_contacts(contacts)
        summary.contacts_inserted += report.get("created", 0)
        summary.contacts_existing += report.get("skipped", 0)

    def _pull_contacts(self, summary: SyncSummary) -> None:
        response = self.client.pull_contacts(since=self.state.last_contact_pull)
        contacts = response.get("contacts", [])
        summary.contacts_pulled = len(contacts)
        if self.on_contacts and contacts:
            self.on_contacts(contacts)
        self.state.last_contact_pull = response.get("server_time")
        self.state.save(self.state_path)

    def run_forever(
        self,
        interval_seconds: float = DEFAULT_SYNC_INTERVAL_SECONDS,
        *,
        max_runs: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """
        Run periodically; a failed run is logged and retried next interval.

        Returns the number of failed runs. Stops early once the stored token
        has been rejected.
        """
        runs = 0
        failures = 0
        while max_runs is None or runs < max_runs:
            runs += 1
            try:
                self.run_once()
            except (CrmApiError, requests.RequestException, OSError, ValueError) as exc:
                failures += 1
                logger.exception("Sync run %s failed: %s", runs, exc)
                if not self.registered:
                    break
            if max_runs is not None and runs >= max_runs:
                break
            logger.info("Sleeping for %.1fs", interval_seconds)
            sleep(interval_seconds)
        return failures
