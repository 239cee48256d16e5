"""Compiled-in action catalog.

Each descriptor binds one handler (or one handler per option value) to the
``DirectoryPort`` passed in by the app controller. Handlers stay thin: they
translate the validated context into one directory call and return whatever
the directory returns; the normalizer takes care of the shape.
"""

from __future__ import annotations


import re
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional

from .actions import ActionDescriptor, ActionRegistry, FieldSpec, Requirement
from .context import ExecutionContext
from .ports import DirectoryPort, UseCaseError
from .time_utils import to_wire

PERMISSION_KINDS = ("FullAccess", "SendAs", "SendOnBehalf")
CALENDAR_RIGHTS = ("Reviewer", "Editor", "Author", "None")
AUTO_REPLY_STATES = ("Scheduled", "Enabled", "Disabled")
MAILBOX_TYPES = ("Regular", "Shared", "Room", "Equipment")

_QUOTA_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(MB|GB|TB)\s*$", re.IGNORECASE)


class CatalogHandlers:
    """Handler implementations bound to one directory port."""

    def __init__(
        self,
        directory: DirectoryPort,
        session_info: Optional[Callable[[], Mapping[str, Any]]] = None,
    ) -> None:
        self.directory = directory
        self.session_info = session_info

    # ---- mailbox permissions ----
    def list_mailbox_permissions(self, ctx: ExecutionContext) -> List[Dict[str, Any]]:
        return self.directory.list_mailbox_permissions(ctx.primary)

    def grant_mailbox_permission(self, ctx: ExecutionContext, *, kind: str) -> Dict[str, Any]:
        return self.directory.add_mailbox_permission(ctx.primary, ctx.secondary, kind)

    def remove_mailbox_permission(self, ctx: ExecutionContext, *, kind: str) -> Dict[str, Any]:
        return self.directory.remove_mailbox_permission(ctx.primary, ctx.secondary, kind)

    # ---- calendar ----
    def list_calendar_permissions(self, ctx: ExecutionContext) -> List[Dict[str, Any]]:
        return self.directory.list_calendar_permissions(ctx.primary)

    def set_calendar_permission(self, ctx: ExecutionContext, *, access_right: str) -> Dict[str, Any]:
        return self.directory.set_calendar_permission(ctx.primary, ctx.secondary, access_right)

    # ---- groups ----
    def list_group_members(self, ctx: ExecutionContext) -> List[Dict[str, Any]]:
        return self.directory.list_group_members(ctx.primary)

    def add_group_member(self, ctx: ExecutionContext) -> Dict[str, Any]:
        return self.directory.add_group_member(ctx.primary, ctx.secondary)

    def remove_group_member(self, ctx: ExecutionContext) -> str:
        self.directory.remove_group_member(ctx.primary, ctx.secondary)
        return f"Removed {ctx.secondary} from {ctx.primary}."

    # ---- reports ----
    def mailbox_size_report(self, ctx: ExecutionContext) -> List[Dict[str, Any]]:
        return self.directory.mailbox_statistics()

    def message_trace(self, ctx: ExecutionContext) -> List[Dict[str, Any]]:
        sender = ctx.primary or None
        return self.directory.message_trace(sender, to_wire(ctx.start), to_wire(ctx.end))

    # ---- mailbox settings ----
    def set_mailbox_quota(self, ctx: ExecutionContext) -> Dict[str, Any]:
        match = _QUOTA_RE.match(ctx.extra)
        if not match:
            raise UseCaseError("INVALID_QUOTA", "Quota must look like '50GB' or '500 MB'.")
        quota = f"{match.group(1)}{match.group(2).upper()}"
        return self.directory.set_mailbox_quota(ctx.primary, quota)

    def set_auto_reply(self, ctx: ExecutionContext, *, state: str) -> Dict[str, Any]:
        config: Dict[str, Any] = {"state": state}
        if state == "Scheduled":
            if ctx.start is None or ctx.end is None:
                raise UseCaseError(
                    "SCHEDULE_REQUIRED", "Scheduled replies need both start and end time."
                )
            config["start"] = to_wire(ctx.start)
            config["end"] = to_wire(ctx.end)
        if state != "Disabled":
            config["internal_message"] = ctx.message_internal
            config["external_message"] = ctx.message_external
        return self.directory.set_auto_reply(ctx.primary, config)

    def convert_mailbox(self, ctx: ExecutionContext, *, target: str) -> Dict[str, Any]:
        return self.directory.convert_mailbox(ctx.primary, target)  # type: ignore[arg-type]

    # ---- local ----
    def session_details(self, ctx: ExecutionContext) -> Dict[str, Any]:
        if self.session_info is None:
            return {}
        return dict(self.session_info())


def _per_option(fn: Callable[..., Any], keyword: str, options) -> Dict[str, Callable[[ExecutionContext], Any]]:
    return {option: partial(fn, **{keyword: option}) for option in options}


def build_default_registry(
    directory: DirectoryPort,
    session_info: Optional[Callable[[], Mapping[str, Any]]] = None,
) -> ActionRegistry:
    """Build the console catalog in display order."""
    h = CatalogHandlers(directory, session_info=session_info)
    mailbox_pair = {"primary": "Mailbox", "secondary": "Trustee", "option": "Permission"}

    specs: List[Dict[str, Any]] = [
        dict(
            label="Get mailbox permissions",
            fields=FieldSpec.subject(),
            heavy=True,
            handler=h.list_mailbox_permissions,
            captions={"primary": "Mailbox"},
        ),
        dict(
            label="Grant mailbox permission",
            fields=FieldSpec.subject_pair_option(PERMISSION_KINDS),
            heavy=True,
            option_handlers=_per_option(h.grant_mailbox_permission, "kind", PERMISSION_KINDS),
            captions=mailbox_pair,
        ),
        dict(
            label="Remove mailbox permission",
            fields=FieldSpec.subject_pair_option(PERMISSION_KINDS),
            heavy=True,
            option_handlers=_per_option(h.remove_mailbox_permission, "kind", PERMISSION_KINDS),
            captions=mailbox_pair,
        ),
        dict(
            label="Get calendar permissions",
            fields=FieldSpec.subject(),
            heavy=True,
            handler=h.list_calendar_permissions,
            captions={"primary": "Mailbox"},
        ),
        dict(
            label="Set calendar permission",
            fields=FieldSpec.subject_pair_option(CALENDAR_RIGHTS),
            heavy=True,
            option_handlers=_per_option(h.set_calendar_permission, "access_right", CALENDAR_RIGHTS),
            captions={"primary": "Mailbox", "secondary": "User", "option": "Access right"},
        ),
        dict(
            label="Get group members",
            fields=FieldSpec.subject(),
            heavy=True,
            handler=h.list_group_members,
            captions={"primary": "Group"},
        ),
        dict(
            label="Add group member",
            fields=FieldSpec.subject_pair(),
            heavy=True,
            handler=h.add_group_member,
            captions={"primary": "Group", "secondary": "Member"},
        ),
        dict(
            label="Remove group member",
            fields=FieldSpec.subject_pair(),
            heavy=True,
            handler=h.remove_group_member,
            captions={"primary": "Group", "secondary": "Member"},
        ),
        dict(
            label="Mailbox size report",
            fields=FieldSpec.none(),
            heavy=True,
            handler=h.mailbox_size_report,
        ),
        dict(
            label="Set mailbox quota",
            fields=FieldSpec.subject_extra(),
            heavy=True,
            handler=h.set_mailbox_quota,
            captions={"primary": "Mailbox", "extra": "Quota (e.g. 50GB)"},
        ),
        dict(
            label="Set automatic replies",
            fields=FieldSpec.auto_reply(AUTO_REPLY_STATES),
            heavy=True,
            option_handlers=_per_option(h.set_auto_reply, "state", AUTO_REPLY_STATES),
            captions={"primary": "Mailbox", "option": "State"},
        ),
        dict(
            label="Message trace",
            fields=FieldSpec.schedule(subject=Requirement.OPTIONAL),
            heavy=True,
            handler=h.message_trace,
            captions={"primary": "Sender (optional)"},
        ),
        dict(
            label="Convert mailbox",
            fields=FieldSpec.subject_option(MAILBOX_TYPES),
            heavy=True,
            option_handlers=_per_option(h.convert_mailbox, "target", MAILBOX_TYPES),
            captions={"primary": "Mailbox", "option": "Target type"},
        ),
        dict(
            label="Show session details",
            fields=FieldSpec.none(),
            heavy=False,
            handler=h.session_details,
        ),
    ]
    return ActionRegistry(
        ActionDescriptor(key=index, **spec) for index, spec in enumerate(specs)
    )


__all__ = [
    "AUTO_REPLY_STATES",
    "CALENDAR_RIGHTS",
    "CatalogHandlers",
    "MAILBOX_TYPES",
    "PERMISSION_KINDS",
    "build_default_registry",
]
