from __future__ import annotations

import pytest

from _node import FakeNode, sign_provider
from eostx.client import Client


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def client(node: FakeNode) -> Client:
    return Client(transport=node, sign_provider=sign_provider)
