"""
Location hierarchy traversal.

The whole location forest is loaded once (two queries) into a read-only
:class:`LocationTree` and every walk happens in memory.  Walking down gives
the ids a user may access; walking up gives the users to alert when a
notification is raised at a location.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from registry.exceptions import LocationCycleError, LocationNotFound
from registry.models import Location

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRef:
    id: int
    email: str


@dataclass(frozen=True)
class LocationNode:
    id: int
    name: str
    type: str
    parent_id: Optional[int] = None
    users: tuple[UserRef, ...] = field(default_factory=tuple)


class LocationTree:
    """In-memory snapshot of the location forest.

    The tree only reads the nodes it is given, so one instance can be shared
    by concurrent requests.
    """

    def __init__(self, nodes: Iterable[LocationNode]):
        self._nodes: dict[int, LocationNode] = {}
        self._children: dict[int, list[int]] = defaultdict(list)
        for node in nodes:
            self._nodes[node.id] = node
        for node in self._nodes.values():
            if node.parent_id is not None:
                self._children[node.parent_id].append(node.id)
        for child_ids in self._children.values():
            child_ids.sort()

    def __contains__(self, location_id) -> bool:
        return location_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, location_id: int) -> LocationNode:
        try:
            return self._nodes[location_id]
        except KeyError:
            raise LocationNotFound(location_id) from None

    def get_children(self, location_id: int) -> list[LocationNode]:
        self.get_node(location_id)
        return [self._nodes[cid] for cid in self._children.get(location_id, [])]

    def get_users(self, location_id: int) -> list[UserRef]:
        return list(self.get_node(location_id).users)

    def get_accessible_location_ids(self, location_id: int) -> set[int]:
        """Return ``location_id`` and the ids of all its descendants."""
        self.get_node(location_id)
        seen: set[int] = set()
        stack = [location_id]
        while stack:
            current = stack.pop()
            if current in seen:
                logger.error("location cycle detected below %s at %s", location_id, current)
                raise LocationCycleError(current)
            seen.add(current)
            stack.extend(reversed(self._children.get(current, [])))
        return seen

    def iter_ancestry(self, location_id: int):
        """Yield the node for ``location_id`` and then each ancestor up to the root."""
        seen: set[int] = set()
        current: Optional[int] = location_id
        while current is not None:
            if current in seen:
                logger.error("location cycle detected above %s at %s", location_id, current)
                raise LocationCycleError(current)
            seen.add(current)
            node = self.get_node(current)
            yield node
            current = node.parent_id

    def get_parent_users(self, location_id: int) -> list[UserRef]:
        """Users attached to ``location_id`` and its ancestors, nearest first, without duplicates."""
        users: list[UserRef] = []
        seen_ids: set[int] = set()
        for node in self.iter_ancestry(location_id):
            for user in node.users:
                if user.id in seen_ids:
                    continue
                seen_ids.add(user.id)
                users.append(user)
        return users

    def build_location_tree(self, location_id: Optional[int]) -> Optional[dict]:
        """Nested ``{id, name, type, parent}`` description of a location's ancestry."""
        if location_id is None:
            return None
        result: Optional[dict] = None
        for node in reversed(list(self.iter_ancestry(location_id))):
            result = {'id': node.id, 'name': node.name, 'type': node.type, 'parent': result}
        return result


def load_location_tree() -> LocationTree:
    """Bulk-load every location with its attached users."""
    users_by_location: dict[int, list[UserRef]] = defaultdict(list)
    memberships = (
        Location.users.through.objects
        .order_by('location_id', 'user_id')
        .values_list('location_id', 'user_id', 'user__email')
    )
    for location_id, user_id, email in memberships:
        users_by_location[location_id].append(UserRef(id=user_id, email=email or ''))

    nodes = [
        LocationNode(
            id=row['id'],
            name=row['name'],
            type=row['type'],
            parent_id=row['parent_id'],
            users=tuple(users_by_location.get(row['id'], ())),
        )
        for row in Location.objects.values('id', 'name', 'type', 'parent_id')
    ]
    return LocationTree(nodes)


def get_accessible_location_ids(location_id: int, tree: Optional[LocationTree] = None) -> list[int]:
    if tree is None:
        tree = load_location_tree()
    return sorted(tree.get_accessible_location_ids(location_id))


def get_parent_users(location_id: int, tree: Optional[LocationTree] = None) -> list[UserRef]:
    if tree is None:
        tree = load_location_tree()
    return tree.get_parent_users(location_id)
