from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional, Protocol

Identity = str
PermissionKind = Literal["FullAccess", "SendAs", "SendOnBehalf"]
MailboxType = Literal["Regular", "Shared", "Room", "Equipment"]


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ValidationFailure(UseCaseError):
    """Missing or malformed operator input; raised before any handler runs."""

    def __init__(self, message: str, *, slot: Optional[str] = None):
        super().__init__("VALIDATION_FAILED", message)
        self.slot = slot


class PreconditionFailure(UseCaseError):
    """A gate such as the live remote connection is not satisfied."""

    def __init__(self, message: str, code: str = "NOT_CONNECTED"):
        super().__init__(code, message)


class HandlerFailure(UseCaseError):
    """Fault raised inside an action handler, caught at the engine boundary."""

    def __init__(self, code: str, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(code, message)
        self.cause = cause


class EngineFailure(UseCaseError):
    """Worker pool or completion delivery machinery failed."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__("ENGINE_FAILED", message)
        self.cause = cause


# ---- Ports (Hexagonal boundaries) ----
class SessionPort(Protocol):
    """Long-lived remote management session owned outside the core."""

    def connect(self) -> None: ...
    def disconnect(self) -> None: ...
    def is_connected(self) -> bool: ...


class DirectoryPort(Protocol):
    """Remote mail-directory operations invoked by catalog handlers."""

    def list_mailbox_permissions(self, mailbox: Identity) -> List[Dict[str, Any]]: ...
    def add_mailbox_permission(
        self, mailbox: Identity, trustee: Identity, kind: PermissionKind
    ) -> Dict[str, Any]: ...
    def remove_mailbox_permission(
        self, mailbox: Identity, trustee: Identity, kind: PermissionKind
    ) -> Dict[str, Any]: ...
    def list_calendar_permissions(self, mailbox: Identity) -> List[Dict[str, Any]]: ...
    def set_calendar_permission(
        self, mailbox: Identity, user: Identity, access_right: str
    ) -> Dict[str, Any]: ...
    def list_group_members(self, group: Identity) -> List[Dict[str, Any]]: ...
    def add_group_member(self, group: Identity, member: Identity) -> Dict[str, Any]: ...
    def remove_group_member(self, group: Identity, member: Identity) -> None: ...
    def mailbox_statistics(self) -> List[Dict[str, Any]]: ...
    def set_mailbox_quota(self, mailbox: Identity, quota: str) -> Dict[str, Any]: ...
    def set_auto_reply(self, mailbox: Identity, config: Dict[str, Any]) -> Dict[str, Any]: ...
    def message_trace(
        self, sender: Optional[Identity], start: str, end: str
    ) -> List[Dict[str, Any]]: ...
    def convert_mailbox(self, mailbox: Identity, target: MailboxType) -> Dict[str, Any]: ...


class StoragePort(Protocol):
    """Persistence for console settings."""

    def save_user_settings(self, payload: Dict[str, Any]) -> None: ...
    def load_user_settings(self) -> Dict[str, Any]: ...
