from __future__ import annotations

from typing import List

import pytest

from conftest import ScriptedPrompter

from gcp_provision.select import ResourceKind, select_or_create
from gcp_provision.util.errors import ExecutionFailed

MESSAGE = "Select an existing thing or create a new one"


def _kind(existing: List[str], created: List[str], **kwargs) -> ResourceKind[str]:
    def _create() -> str:
        created.append("new")
        return "new"

    return ResourceKind(
        name="thing",
        message=MESSAGE,
        create_label="Create a new thing",
        list=lambda: list(existing),
        create=_create,
        label=lambda item: item.upper(),
        **kwargs,
    )


@pytest.mark.parametrize("choice", [0, 1, 2])
def test_existing_choice_returns_item_without_create(choice: int) -> None:
    created: List[str] = []
    prompter = ScriptedPrompter({MESSAGE: choice})
    picked = select_or_create(_kind(["a", "b", "c"], created), prompter)

    assert picked == ["a", "b", "c"][choice]
    assert created == []


def test_create_label_invokes_create() -> None:
    created: List[str] = []
    prompter = ScriptedPrompter({MESSAGE: "Create a new thing"})
    assert select_or_create(_kind(["a"], created), prompter) == "new"
    assert created == ["new"]


def test_empty_listing_creates_without_prompting() -> None:
    created: List[str] = []
    prompter = ScriptedPrompter()
    assert select_or_create(_kind([], created), prompter) == "new"
    assert prompter.asked == []


def test_preferred_item_is_the_default() -> None:
    prompter = ScriptedPrompter()
    picked = select_or_create(_kind(["a", "b"], [], preferred=lambda item: item == "b"), prompter)

    assert picked == "b"
    assert prompter.asked == [("select", MESSAGE, 1)]


def test_create_is_default_when_nothing_preferred_matches() -> None:
    created: List[str] = []
    prompter = ScriptedPrompter()
    picked = select_or_create(_kind(["a", "b"], created, preferred=lambda item: item == "z"), prompter)

    assert picked == "new"
    assert prompter.asked == [("select", MESSAGE, 2)]


def test_failed_listing_counts_as_empty() -> None:
    created: List[str] = []

    def _refuse() -> List[str]:
        raise ExecutionFailed(["gcloud", "sql", "instances", "list"], 1, "API not enabled")

    kind = ResourceKind(
        name="thing",
        message=MESSAGE,
        create_label="Create a new thing",
        list=_refuse,
        create=lambda: created.append("new") or "new",
        label=str,
    )
    assert select_or_create(kind, ScriptedPrompter()) == "new"
    assert created == ["new"]


def test_declined_create_returns_none() -> None:
    kind = ResourceKind(
        name="thing",
        message=MESSAGE,
        create_label="Create a new thing",
        list=lambda: [],
        create=lambda: None,
        label=str,
    )
    assert select_or_create(kind, ScriptedPrompter()) is None
