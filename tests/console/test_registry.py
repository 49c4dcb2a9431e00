from typing import List

import pytest

from dev_console.console.registry import Command, CommandRegistry


def _noop(args: List[str]) -> str:
    return ""


def test_lookup_is_case_insensitive() -> None:
    registry = CommandRegistry([Command("help", "Show help", _noop)])
    assert registry.get("HELP") is registry.get("help")
    assert "Help" in registry
    assert registry.get("nope") is None


def test_iteration_keeps_registration_order() -> None:
    registry = CommandRegistry(
        [Command("zeta", "", _noop), Command("alpha", "", _noop), Command("mid", "", _noop)]
    )
    assert registry.names == ["zeta", "alpha", "mid"]
    assert len(registry) == 3


def test_duplicate_names_are_rejected() -> None:
    with pytest.raises(ValueError):
        CommandRegistry([Command("help", "", _noop), Command("HELP", "", _noop)])


def test_by_category_groups_in_order() -> None:
    registry = CommandRegistry(
        [
            Command("a", "", _noop, category="One"),
            Command("b", "", _noop, category="Two"),
            Command("c", "", _noop, category="One"),
        ]
    )
    groups = registry.by_category()
    assert list(groups) == ["One", "Two"]
    assert [cmd.name for cmd in groups["One"]] == ["a", "c"]


def test_commands_are_immutable() -> None:
    cmd = Command("help", "", _noop)
    with pytest.raises(AttributeError):
        cmd.name = "other"  # type: ignore[misc]
