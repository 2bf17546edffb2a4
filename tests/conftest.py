from __future__ import annotations

from typing import Iterable, List

import pytest

from passwordgate.hibp import BreachChecker, BreachServiceError


class FakeBreach:
    """Stands in for the HIBP lookup; records every password it was asked about."""

    def __init__(self, breached: Iterable[str] = (), fail: bool = False) -> None:
        self.breached = set(breached)
        self.fail = fail
        self.calls: List[str] = []

    async def __call__(self, password: str) -> bool:
        self.calls.append(password)
        if self.fail:
            raise BreachServiceError("service down")
        return password in self.breached


@pytest.fixture
def fake_breach() -> FakeBreach:
    return FakeBreach(breached={"password", "123456"})


@pytest.fixture
def checker(fake_breach: FakeBreach) -> BreachChecker:
    return BreachChecker(fake_breach)


@pytest.fixture
def breach_factory():
    return FakeBreach
