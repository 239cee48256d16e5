"""Action descriptors and the read-only registry the console offers.

Views read the registry to build the action list and to decide which form
fields are editable. The dispatcher resolves the selected descriptor, lets the
context builder validate the form against ``FieldSpec`` and then asks the
descriptor for the handler bound to the chosen option.
"""

from __future__ import annotations


from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

if TYPE_CHECKING:  # pragma: no cover
    from .context import ExecutionContext

Handler = Callable[["ExecutionContext"], Any]

SLOTS: Tuple[str, ...] = (
    "primary",
    "secondary",
    "option",
    "extra",
    "start",
    "end",
    "message_internal",
    "message_external",
)

SLOT_LABELS: Dict[str, str] = {
    "primary": "Primary subject",
    "secondary": "Secondary subject",
    "option": "Option",
    "extra": "Extra value",
    "start": "Start time",
    "end": "End time",
    "message_internal": "Internal message",
    "message_external": "External message",
}

TIMESTAMP_SLOTS = frozenset({"start", "end"})


class Requirement(str, Enum):
    """How an action consumes one input slot."""

    UNUSED = "unused"
    OPTIONAL = "optional"
    REQUIRED = "required"


_U = Requirement.UNUSED
_O = Requirement.OPTIONAL
_R = Requirement.REQUIRED


@dataclass(frozen=True)
class FieldSpec:
    """Per-slot requirements of one action plus the legal option values."""

    primary: Requirement = _U
    secondary: Requirement = _U
    option: Requirement = _U
    extra: Requirement = _U
    start: Requirement = _U
    end: Requirement = _U
    message_internal: Requirement = _U
    message_external: Requirement = _U
    options: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(str(opt) for opt in self.options))
        if self.option is not _U and not self.options:
            raise ValueError("FieldSpec uses the option slot but lists no options.")
        if self.option is _U and self.options:
            raise ValueError("FieldSpec lists options but does not use the option slot.")
        if len(set(self.options)) != len(self.options):
            raise ValueError("FieldSpec options must be unique.")

    # ---- capability contract ----
    def requirement(self, slot: str) -> Requirement:
        if slot not in SLOTS:
            raise KeyError(f"Unknown slot: {slot}")
        return getattr(self, slot)

    def is_required(self, slot: str) -> bool:
        return self.requirement(slot) is _R

    def uses(self, slot: str) -> bool:
        return self.requirement(slot) is not _U

    def used_slots(self) -> List[str]:
        return [slot for slot in SLOTS if self.uses(slot)]

    # ---- recurring shapes ----
    @classmethod
    def none(cls) -> "FieldSpec":
        return cls()

    @classmethod
    def subject(cls) -> "FieldSpec":
        return cls(primary=_R)

    @classmethod
    def subject_pair(cls) -> "FieldSpec":
        return cls(primary=_R, secondary=_R)

    @classmethod
    def subject_option(cls, options: Iterable[str]) -> "FieldSpec":
        return cls(primary=_R, option=_R, options=tuple(options))

    @classmethod
    def subject_pair_option(cls, options: Iterable[str]) -> "FieldSpec":
        return cls(primary=_R, secondary=_R, option=_R, options=tuple(options))

    @classmethod
    def subject_extra(cls) -> "FieldSpec":
        return cls(primary=_R, extra=_R)

    @classmethod
    def schedule(cls, *, subject: Requirement = _O) -> "FieldSpec":
        return cls(primary=subject, start=_R, end=_R)

    @classmethod
    def auto_reply(cls, options: Iterable[str]) -> "FieldSpec":
        return cls(
            primary=_R,
            option=_R,
            start=_O,
            end=_O,
            message_internal=_O,
            message_external=_O,
            options=tuple(options),
        )


@dataclass(frozen=True)
class ActionDescriptor:
    """Immutable description of one catalog operation.

    Exactly one of ``handler`` or ``option_handlers`` is set. Option handlers
    are keyed by the legal option values of ``fields`` and resolved from the
    validated context, so handlers never branch on the option text themselves.
    """

    key: int
    label: str
    fields: FieldSpec = field(default_factory=FieldSpec)
    heavy: bool = False
    handler: Optional[Handler] = field(default=None, compare=False)
    option_handlers: Mapping[str, Handler] = field(default_factory=dict, compare=False)
    captions: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.label, str) or not self.label.strip():
            raise ValueError("ActionDescriptor label must be a non-empty string.")
        has_single = self.handler is not None
        has_options = bool(self.option_handlers)
        if has_single == has_options:
            raise ValueError(f"{self.label}: declare either handler or option_handlers.")
        if has_options:
            if set(self.option_handlers) != set(self.fields.options):
                raise ValueError(f"{self.label}: option handlers must cover exactly {self.fields.options}.")
        object.__setattr__(self, "option_handlers", MappingProxyType(dict(self.option_handlers)))
        object.__setattr__(self, "captions", MappingProxyType(dict(self.captions)))

    def caption_for(self, slot: str) -> str:
        """Return the field caption shown next to ``slot`` for this action."""
        return self.captions.get(slot) or SLOT_LABELS[slot]

    def handler_for(self, context: "ExecutionContext") -> Handler:
        if self.handler is not None:
            return self.handler
        option = context.option
        if option is None or option not in self.option_handlers:
            raise KeyError(f"{self.label}: no handler registered for option {option!r}")
        return self.option_handlers[option]


class ActionRegistry:
    """Ordered, read-only sequence of action descriptors."""

    def __init__(self, descriptors: Iterable[ActionDescriptor]) -> None:
        items = tuple(descriptors)
        seen_labels = set()
        for position, descriptor in enumerate(items):
            if descriptor.key != position:
                raise ValueError(
                    f"Action {descriptor.label!r} has key {descriptor.key}, expected {position}."
                )
            if descriptor.label in seen_labels:
                raise ValueError(f"Duplicate action label: {descriptor.label}")
            seen_labels.add(descriptor.label)
        self._items: Tuple[ActionDescriptor, ...] = items

    def count(self) -> int:
        return len(self._items)

    def get(self, index: Any) -> Optional[ActionDescriptor]:
        """Return the descriptor at ``index`` or ``None`` when out of range."""
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def labels(self) -> List[str]:
        return [item.label for item in self._items]

    def __iter__(self) -> Iterator[ActionDescriptor]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "ActionDescriptor",
    "ActionRegistry",
    "FieldSpec",
    "Handler",
    "Requirement",
    "SLOTS",
    "SLOT_LABELS",
    "TIMESTAMP_SLOTS",
]
