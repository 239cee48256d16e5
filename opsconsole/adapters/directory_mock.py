from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from .api_errors import ApiClientError

_DEFAULT_MAILBOXES = {
    "alice@contoso.test": {"DisplayName": "Alice Adams", "Type": "Regular", "SizeMB": 5120, "Items": 18432},
    "bob@contoso.test": {"DisplayName": "Bob Brown", "Type": "Regular", "SizeMB": 2210, "Items": 9120},
    "frontdesk@contoso.test": {"DisplayName": "Front Desk", "Type": "Shared", "SizeMB": 830, "Items": 4410},
    "room1@contoso.test": {"DisplayName": "Meeting Room 1", "Type": "Room", "SizeMB": 12, "Items": 310},
}

_DEFAULT_GROUPS = {
    "sales@contoso.test": ["alice@contoso.test", "bob@contoso.test"],
    "support@contoso.test": ["bob@contoso.test"],
}


@dataclass
class DirectoryMock:
    """Offline substitute for ``DirectoryRestAdapter`` with deterministic data.

    ``latency_s`` delays every call, which makes async mode observable in
    offline demos.
    """

    latency_s: float = 0.0
    mailboxes: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: {key: dict(value) for key, value in _DEFAULT_MAILBOXES.items()}
    )
    groups: Dict[str, List[str]] = field(
        default_factory=lambda: {key: list(value) for key, value in _DEFAULT_GROUPS.items()}
    )

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._permissions: Dict[str, List[Tuple[str, str]]] = {
            "frontdesk@contoso.test": [("alice@contoso.test", "FullAccess")],
        }
        self._calendar: Dict[str, Dict[str, str]] = {
            mailbox: {"Default": "AvailabilityOnly"} for mailbox in self.mailboxes
        }
        self._quotas: Dict[str, str] = {}
        self._auto_replies: Dict[str, Dict[str, Any]] = {}

    # ---------- DirectoryPort ----------

    def list_mailbox_permissions(self, mailbox: str) -> List[Dict[str, Any]]:
        key = self._mailbox(mailbox)
        with self._lock:
            return [
                {"Mailbox": key, "Trustee": trustee, "AccessRights": kind}
                for trustee, kind in self._permissions.get(key, [])
            ]

    def add_mailbox_permission(self, mailbox: str, trustee: str, kind: str) -> Dict[str, Any]:
        key = self._mailbox(mailbox)
        who = self._mailbox(trustee)
        with self._lock:
            entries = self._permissions.setdefault(key, [])
            if (who, kind) in entries:
                raise ApiClientError(
                    f"{who} already has {kind} on {key}", status=409, context="add_mailbox_permission"
                )
            entries.append((who, kind))
        return {"Mailbox": key, "Trustee": who, "AccessRights": kind, "Status": "Granted"}

    def remove_mailbox_permission(self, mailbox: str, trustee: str, kind: str) -> Dict[str, Any]:
        key = self._mailbox(mailbox)
        who = trustee.strip().lower()
        with self._lock:
            entries = self._permissions.get(key, [])
            if (who, kind) not in entries:
                raise ApiClientError(
                    f"{who} has no {kind} on {key}", status=404, context="remove_mailbox_permission"
                )
            entries.remove((who, kind))
        return {"Mailbox": key, "Trustee": who, "AccessRights": kind, "Status": "Removed"}

    def list_calendar_permissions(self, mailbox: str) -> List[Dict[str, Any]]:
        key = self._mailbox(mailbox)
        with self._lock:
            return [
                {"Mailbox": key, "User": user, "AccessRights": right}
                for user, right in self._calendar.get(key, {}).items()
            ]

    def set_calendar_permission(self, mailbox: str, user: str, access_right: str) -> Dict[str, Any]:
        key = self._mailbox(mailbox)
        who = self._mailbox(user)
        with self._lock:
            calendar = self._calendar.setdefault(key, {})
            if access_right == "None":
                calendar.pop(who, None)
            else:
                calendar[who] = access_right
        return {"Mailbox": key, "User": who, "AccessRights": access_right}

    def list_group_members(self, group: str) -> List[Dict[str, Any]]:
        key = self._group(group)
        with self._lock:
            members = list(self.groups[key])
        return [
            {"Group": key, "Member": member, "DisplayName": self.mailboxes.get(member, {}).get("DisplayName", "")}
            for member in members
        ]

    def add_group_member(self, group: str, member: str) -> Dict[str, Any]:
        key = self._group(group)
        who = self._mailbox(member)
        with self._lock:
            if who in self.groups[key]:
                raise ApiClientError(f"{who} is already a member of {key}", status=409, context="add_group_member")
            self.groups[key].append(who)
        return {"Group": key, "Member": who, "Status": "Added"}

    def remove_group_member(self, group: str, member: str) -> None:
        key = self._group(group)
        who = member.strip().lower()
        with self._lock:
            if who not in self.groups[key]:
                raise ApiClientError(f"{who} is not a member of {key}", status=404, context="remove_group_member")
            self.groups[key].remove(who)

    def mailbox_statistics(self) -> List[Dict[str, Any]]:
        self._delay()
        with self._lock:
            return [
                {
                    "Mailbox": key,
                    "DisplayName": data.get("DisplayName", ""),
                    "TotalSizeMB": data.get("SizeMB", 0),
                    "ItemCount": data.get("Items", 0),
                    "Quota": self._quotas.get(key, "50GB"),
                }
                for key, data in sorted(self.mailboxes.items())
            ]

    def set_mailbox_quota(self, mailbox: str, quota: str) -> Dict[str, Any]:
        key = self._mailbox(mailbox)
        with self._lock:
            self._quotas[key] = quota
        return {"Mailbox": key, "Quota": quota}

    def set_auto_reply(self, mailbox: str, config: Dict[str, Any]) -> Dict[str, Any]:
        key = self._mailbox(mailbox)
        with self._lock:
            self._auto_replies[key] = dict(config)
        return {"Mailbox": key, "AutoReplyState": config.get("state", "")}

    def message_trace(self, sender: Optional[str], start: str, end: str) -> List[Dict[str, Any]]:
        self._delay()
        begin = datetime.fromisoformat(start)
        finish = datetime.fromisoformat(end)
        senders = [self._mailbox(sender)] if sender else sorted(self.mailboxes)
        rows: List[Dict[str, Any]] = []
        step = max((finish - begin) / 4, timedelta(minutes=1))
        for index, who in enumerate(senders):
            received = begin + step * (index % 4)
            if received > finish:
                continue
            rows.append(
                {
                    "Received": received.isoformat(),
                    "Sender": who,
                    "Recipient": "bob@contoso.test" if who != "bob@contoso.test" else "alice@contoso.test",
                    "Subject": f"Trace sample {index + 1}",
                    "Status": "Delivered",
                }
            )
        return rows

    def convert_mailbox(self, mailbox: str, target: str) -> Dict[str, Any]:
        key = self._mailbox(mailbox)
        with self._lock:
            previous = self.mailboxes[key].get("Type", "Regular")
            self.mailboxes[key]["Type"] = target
        return {"Mailbox": key, "PreviousType": previous, "Type": target}

    # ---------- helpers ----------

    def auto_reply_for(self, mailbox: str) -> Optional[Dict[str, Any]]:
        return self._auto_replies.get(mailbox.strip().lower())

    def quota_for(self, mailbox: str) -> Optional[str]:
        return self._quotas.get(mailbox.strip().lower())

    def _delay(self) -> None:
        if self.latency_s > 0:
            time.sleep(self.latency_s)

    def _mailbox(self, identity: str) -> str:
        self._delay()
        key = (identity or "").strip().lower()
        if key not in self.mailboxes:
            raise ApiClientError(f"Mailbox {identity!r} not found", status=404, context="mailbox lookup")
        return key

    def _group(self, identity: str) -> str:
        self._delay()
        key = (identity or "").strip().lower()
        if key not in self.groups:
            raise ApiClientError(f"Group {identity!r} not found", status=404, context="group lookup")
        return key


@dataclass
class SessionMock:
    """Offline ``SessionPort``; ``fail_connect`` simulates a rejected login."""

    fail_connect: bool = False
    connected: bool = False
    tenant: str = "contoso.test"
    admin_upn: str = "admin@contoso.test"

    def connect(self) -> None:
        if self.fail_connect:
            raise ApiClientError("Connect: invalid credentials", status=401, context="connect")
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    def describe(self) -> Dict[str, Any]:
        return {
            "Gateway": "offline",
            "Tenant": self.tenant,
            "Administrator": self.admin_upn,
            "Connected": self.connected,
        }


__all__ = ["DirectoryMock", "SessionMock"]
