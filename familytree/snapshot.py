"""Flat JSON snapshot of the node collection."""

import json
import logging
from pathlib import Path
from typing import List, Iterable, Union

from familytree.tree import Node

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "family-tree.json"


class FamilyTreeError(Exception):
    """Base class for errors surfaced to the user."""


class SnapshotFormatError(FamilyTreeError):
    """The payload is not a node array."""

    def __init__(self, message: str = "Invalid file format."):
        super().__init__(message)


def encode(nodes: Iterable[Node], indent=None) -> str:
    return json.dumps([n.to_dict() for n in nodes], indent=indent)


def decode(text: Union[str, bytes]) -> List[Node]:
    """Parse a snapshot.

    Only the outer shape is checked: it must be an array of objects.
    Field values are taken as they come.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as exc:
        raise SnapshotFormatError() from exc

    if not isinstance(data, list):
        raise SnapshotFormatError()
    if not all(isinstance(item, dict) for item in data):
        raise SnapshotFormatError()
    return [Node.from_dict(item) for item in data]


def load_file(path: Union[str, Path]) -> List[Node]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SnapshotFormatError() from exc
    nodes = decode(text)
    logger.info("Loaded %d node(s) from %s", len(nodes), path)
    return nodes


def save_file(path: Union[str, Path], nodes: Iterable[Node]):
    path = Path(path)
    path.write_text(encode(nodes), encoding="utf-8")
    logger.info("Saved snapshot to %s", path)
