"""Run the examples embedded in domain docstrings."""

from __future__ import annotations

import doctest
from types import ModuleType

import pytest

from cmdbgraph.domain import relationships, tree


@pytest.mark.parametrize("module", [relationships, tree], ids=lambda m: m.__name__)
def test_docstring_examples(module: ModuleType) -> None:
    failures, attempted = doctest.testmod(module)
    assert attempted > 0
    assert failures == 0
