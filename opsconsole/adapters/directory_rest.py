"""REST adapter implementing ``DirectoryPort`` against the management gateway.

Every method performs one HTTP call through the shared ``RetryingSession`` and
raises ``ApiError`` subclasses for non-2xx responses; the execution engine maps
those into handler failures.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .api_errors import raise_for_status
from .http_client import RetryingSession


def _seg(identity: str) -> str:
    return quote(str(identity).strip(), safe="@.")


class DirectoryRestAdapter:
    """Directory operations over HTTP."""

    def __init__(self, http: RetryingSession, base_url: str) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")

    # ---- mailbox permissions ----
    def list_mailbox_permissions(self, mailbox: str) -> List[Dict[str, Any]]:
        return self._get_list(f"/mailboxes/{_seg(mailbox)}/permissions", "List mailbox permissions")

    def add_mailbox_permission(self, mailbox: str, trustee: str, kind: str) -> Dict[str, Any]:
        return self._post(
            f"/mailboxes/{_seg(mailbox)}/permissions",
            {"trustee": trustee, "kind": kind},
            "Grant mailbox permission",
        )

    def remove_mailbox_permission(self, mailbox: str, trustee: str, kind: str) -> Dict[str, Any]:
        return self._delete(
            f"/mailboxes/{_seg(mailbox)}/permissions",
            "Remove mailbox permission",
            params={"trustee": trustee, "kind": kind},
        )

    # ---- calendar ----
    def list_calendar_permissions(self, mailbox: str) -> List[Dict[str, Any]]:
        return self._get_list(
            f"/mailboxes/{_seg(mailbox)}/calendar-permissions", "List calendar permissions"
        )

    def set_calendar_permission(self, mailbox: str, user: str, access_right: str) -> Dict[str, Any]:
        return self._post(
            f"/mailboxes/{_seg(mailbox)}/calendar-permissions",
            {"user": user, "access_right": access_right},
            "Set calendar permission",
        )

    # ---- groups ----
    def list_group_members(self, group: str) -> List[Dict[str, Any]]:
        return self._get_list(f"/groups/{_seg(group)}/members", "List group members")

    def add_group_member(self, group: str, member: str) -> Dict[str, Any]:
        return self._post(f"/groups/{_seg(group)}/members", {"member": member}, "Add group member")

    def remove_group_member(self, group: str, member: str) -> None:
        self._delete(f"/groups/{_seg(group)}/members/{_seg(member)}", "Remove group member")

    # ---- reports ----
    def mailbox_statistics(self) -> List[Dict[str, Any]]:
        return self._get_list("/reports/mailbox-statistics", "Mailbox statistics")

    def message_trace(self, sender: Optional[str], start: str, end: str) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"start": start, "end": end}
        if sender:
            params["sender"] = sender
        return self._get_list("/reports/message-trace", "Message trace", params=params)

    # ---- mailbox settings ----
    def set_mailbox_quota(self, mailbox: str, quota: str) -> Dict[str, Any]:
        return self._post(f"/mailboxes/{_seg(mailbox)}/quota", {"quota": quota}, "Set mailbox quota")

    def set_auto_reply(self, mailbox: str, config: Dict[str, Any]) -> Dict[str, Any]:
        return self._post(f"/mailboxes/{_seg(mailbox)}/auto-reply", dict(config), "Set automatic replies")

    def convert_mailbox(self, mailbox: str, target: str) -> Dict[str, Any]:
        return self._post(f"/mailboxes/{_seg(mailbox)}/convert", {"type": target}, "Convert mailbox")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _get_list(
        self, path: str, ctx: str, *, params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        resp = self.http.get(self._url(path), params=params)
        raise_for_status(resp, ctx)
        payload = self._json(resp)
        if isinstance(payload, dict):
            payload = payload.get("items", [])
        return list(payload or [])

    def _post(self, path: str, body: Dict[str, Any], ctx: str) -> Dict[str, Any]:
        resp = self.http.post(self._url(path), json_body=body)
        raise_for_status(resp, ctx)
        return self._record(resp)

    def _delete(
        self, path: str, ctx: str, *, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        resp = self.http.delete(self._url(path), params=params)
        raise_for_status(resp, ctx)
        return self._record(resp)

    def _record(self, resp: Any) -> Dict[str, Any]:
        payload = self._json(resp)
        if isinstance(payload, dict):
            return payload
        return {"Result": payload} if payload is not None else {}

    @staticmethod
    def _json(resp: Any) -> Any:
        if getattr(resp, "status_code", 200) == 204 or not getattr(resp, "content", b"x"):
            return None
        return resp.json()


__all__ = ["DirectoryRestAdapter"]
