"""Shared fixtures for FamilyTree tests."""

from typing import Dict, Optional

import pytest

from familytree.geometry import Box
from familytree.transform import Viewport
from familytree.tree import TreeStore


class FakeGeometry:
    """Geometry provider backed by a dict of screen-space boxes."""

    def __init__(self, boxes: Optional[Dict[str, Box]] = None,
                 container: Optional[Box] = Box(0, 0, 800, 600)):
        self.boxes = dict(boxes or {})
        self.container = container

    def node_box(self, node_id: str) -> Optional[Box]:
        return self.boxes.get(node_id)

    def container_box(self) -> Optional[Box]:
        return self.container


@pytest.fixture
def store() -> TreeStore:
    return TreeStore()


@pytest.fixture
def viewport() -> Viewport:
    return Viewport()


@pytest.fixture
def fake_geometry() -> FakeGeometry:
    return FakeGeometry()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("FAMILYTREE_CONFIG_DIR", str(tmp_path / "config"))


@pytest.fixture
def geometry_factory():
    return FakeGeometry
