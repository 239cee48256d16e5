from __future__ import annotations

import pytest

from opsconsole.domain.actions import (
    SLOTS,
    ActionDescriptor,
    ActionRegistry,
    FieldSpec,
    Requirement,
)
from opsconsole.domain.catalog import build_default_registry
from opsconsole.domain.context import ExecutionContext


def _noop(ctx):
    return None


def test_registry_get_returns_none_outside_range() -> None:
    registry = ActionRegistry(
        [
            ActionDescriptor(key=0, label="First", handler=_noop),
            ActionDescriptor(key=1, label="Second", handler=_noop),
        ]
    )

    assert registry.count() == 2
    assert registry.get(0).label == "First"
    assert registry.get(1).label == "Second"
    assert registry.get(2) is None
    assert registry.get(-1) is None
    assert registry.get("0") is None
    assert registry.get(True) is None
    assert registry.labels() == ["First", "Second"]


def test_registry_rejects_key_that_does_not_match_position() -> None:
    with pytest.raises(ValueError):
        ActionRegistry([ActionDescriptor(key=1, label="Misplaced", handler=_noop)])


def test_registry_rejects_duplicate_labels() -> None:
    with pytest.raises(ValueError):
        ActionRegistry(
            [
                ActionDescriptor(key=0, label="Same", handler=_noop),
                ActionDescriptor(key=1, label="Same", handler=_noop),
            ]
        )


def test_descriptor_requires_exactly_one_handler_kind() -> None:
    with pytest.raises(ValueError):
        ActionDescriptor(key=0, label="Nothing")

    spec = FieldSpec.subject_option(("A", "B"))
    with pytest.raises(ValueError):
        ActionDescriptor(
            key=0,
            label="Both",
            fields=spec,
            handler=_noop,
            option_handlers={"A": _noop, "B": _noop},
        )


def test_option_handlers_must_cover_every_option() -> None:
    spec = FieldSpec.subject_option(("A", "B"))
    with pytest.raises(ValueError):
        ActionDescriptor(key=0, label="Partial", fields=spec, option_handlers={"A": _noop})


def test_handler_for_resolves_option_handler() -> None:
    calls = []
    spec = FieldSpec.subject_option(("A", "B"))
    descriptor = ActionDescriptor(
        key=0,
        label="Pick",
        fields=spec,
        option_handlers={"A": lambda ctx: calls.append("A"), "B": lambda ctx: calls.append("B")},
    )

    handler = descriptor.handler_for(ExecutionContext(action_key=0, action_label="Pick", option="B"))
    handler(None)

    assert calls == ["B"]


def test_field_spec_option_slot_needs_options() -> None:
    with pytest.raises(ValueError):
        FieldSpec(primary=Requirement.REQUIRED, option=Requirement.REQUIRED)
    with pytest.raises(ValueError):
        FieldSpec(options=("stray",))


def test_field_spec_reports_used_and_required_slots() -> None:
    spec = FieldSpec.auto_reply(("On", "Off"))

    assert spec.used_slots() == [
        "primary",
        "option",
        "start",
        "end",
        "message_internal",
        "message_external",
    ]
    assert spec.is_required("primary") is True
    assert spec.is_required("start") is False
    assert spec.uses("secondary") is False
    with pytest.raises(KeyError):
        spec.requirement("bogus")


def test_default_registry_keys_match_positions() -> None:
    registry = build_default_registry(directory=object())

    assert registry.count() == 14
    for position, descriptor in enumerate(registry):
        assert descriptor.key == position
        for slot in SLOTS:
            assert descriptor.caption_for(slot)
    assert registry.get(0).label == "Get mailbox permissions"
    assert registry.get(13).label == "Show session details"
    assert registry.get(13).heavy is False
    assert all(descriptor.heavy for descriptor in list(registry)[:13])
