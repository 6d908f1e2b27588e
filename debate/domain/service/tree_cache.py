"""Client-held reply tree.

Nodes live in a flat arena keyed by id. The top-level list and each parent's
loaded child list hold ids only, and a location index records which scope
currently owns each id, so an id can never be listed twice.

Every mutator is synchronous, performs no I/O and never raises: operations
on ids that are not cached are no-ops reported through the return value.
"""

from datetime import datetime
from typing import Optional

from debate.domain.model import ReplyNode
from debate.domain.value import ReplyId

from .base import Service


class TreeCache(Service):
    """In-memory reply tree for one open thread view."""

    def __init__(self) -> None:
        self._nodes: dict[ReplyId, ReplyNode] = {}
        self._top_level: list[ReplyId] = []
        self._children: dict[ReplyId, list[ReplyId]] = {}
        # id -> owning parent id (None = top-level list)
        self._location: dict[ReplyId, Optional[ReplyId]] = {}
        self._expanded: set[ReplyId] = set()
        self._fetched: set[ReplyId] = set()
        self._voting: set[ReplyId] = set()

    # Reads

    def top_level(self) -> list[ReplyNode]:
        """Top-level replies in display order."""
        return [self._nodes[reply_id] for reply_id in self._top_level]

    def children_of(self, reply_id: ReplyId) -> list[ReplyNode]:
        """Loaded children of a reply in display order."""
        return [self._nodes[child_id] for child_id in self._children.get(reply_id, [])]

    def is_expanded(self, reply_id: ReplyId) -> bool:
        return reply_id in self._expanded

    def has_fetched_children(self, reply_id: ReplyId) -> bool:
        """Whether the children of a reply were fetched at least once."""
        return reply_id in self._fetched

    def is_vote_pending(self, reply_id: ReplyId) -> bool:
        return reply_id in self._voting

    def get(self, reply_id: ReplyId) -> Optional[ReplyNode]:
        """Return the cached reply if it is placed in the tree."""
        if reply_id not in self._location:
            return None
        return self._nodes.get(reply_id)

    def contains(self, reply_id: ReplyId) -> bool:
        return self.get(reply_id) is not None

    def parent_of(self, reply_id: ReplyId) -> Optional[ReplyId]:
        return self._location.get(reply_id)

    # Mutators

    def replace_top_level(self, nodes: list[ReplyNode], append: bool) -> None:
        """Load a page of top-level replies.

        Without append the previous top-level list is dropped. Child lists
        of dropped parents are kept and reappear if the parent comes back.

        Args:
            nodes: Replies in server order
            append: Add after the current list instead of replacing it
        """
        if not append:
            for reply_id in self._top_level:
                self._location.pop(reply_id, None)
                self._nodes.pop(reply_id, None)
            self._top_level = []

        for node in nodes:
            self._merge(node, None, self._top_level)

    def set_children(
        self, reply_id: ReplyId, nodes: list[ReplyNode], append: bool
    ) -> None:
        """Load a page of children for a reply and mark them fetched.

        Args:
            reply_id: Parent reply ID
            nodes: Children in server order
            append: Add after the loaded children instead of replacing them
        """
        child_ids = self._children.get(reply_id)
        if child_ids is None or not append:
            for child_id in child_ids or []:
                self._location.pop(child_id, None)
                self._nodes.pop(child_id, None)
            child_ids = []
            self._children[reply_id] = child_ids

        for node in nodes:
            self._merge(node, reply_id, child_ids)

        self._fetched.add(reply_id)

    def insert_created(self, node: ReplyNode, parent_id: Optional[ReplyId]) -> None:
        """Insert a reply the current user just created.

        The reply is shown first in its list. For a nested reply the parent's
        child_count grows by one and the parent is expanded so the new reply
        is visible straight away.

        Args:
            node: Created reply as echoed by the server
            parent_id: Parent reply ID (None for top-level)
        """
        if node.id in self._location:
            self._update(node)
            return

        self._nodes[node.id] = node
        self._location[node.id] = parent_id

        if parent_id is None:
            self._top_level.insert(0, node.id)
            return

        self._children.setdefault(parent_id, []).insert(0, node.id)
        parent = self._nodes.get(parent_id)
        if parent is not None:
            self._nodes[parent_id] = parent.model_copy(
                update={"child_count": parent.child_count + 1}
            )
        self._expanded.add(parent_id)

    def apply_vote(self, reply_id: ReplyId, upvoted: bool, count: int) -> bool:
        """Set the vote state shown for a reply.

        Returns:
            True if the reply is cached
        """
        node = self.get(reply_id)
        if node is None:
            return False

        self._nodes[reply_id] = node.model_copy(
            update={"upvoted": upvoted, "upvote_count": max(0, count)}
        )
        return True

    def apply_edit(
        self, reply_id: ReplyId, content: str, updated_at: Optional[datetime] = None
    ) -> bool:
        """Replace the text of a reply and flag it as edited."""
        node = self.get(reply_id)
        if node is None:
            return False

        update: dict = {"content": content, "is_edited": True}
        if updated_at is not None:
            update["updated_at"] = updated_at
        self._nodes[reply_id] = node.model_copy(update=update)
        return True

    def tombstone(self, reply_id: ReplyId) -> bool:
        """Soft-delete a reply, keeping its place and its loaded children."""
        node = self.get(reply_id)
        if node is None:
            return False

        self._nodes[reply_id] = node.model_copy(
            update={"is_deleted": True, "content": ""}
        )
        return True

    def remove_node(self, reply_id: ReplyId) -> bool:
        """Splice a reply out of whichever list holds it.

        The reply's loaded subtree goes with it, and a nested reply's parent
        loses one from its child_count.

        Returns:
            True if the reply was cached
        """
        if reply_id not in self._location:
            return False

        parent_id = self._location[reply_id]
        self._detach(reply_id)
        self._drop_subtree(reply_id)

        if parent_id is not None:
            parent = self._nodes.get(parent_id)
            if parent is not None:
                self._nodes[parent_id] = parent.model_copy(
                    update={"child_count": max(0, parent.child_count - 1)}
                )
        return True

    def set_expanded(self, reply_id: ReplyId, expanded: bool) -> bool:
        """Show or hide the loaded children of a reply.

        Expanding is refused until the children have been fetched once.
        Collapsing keeps the loaded children.

        Returns:
            True if the requested state now holds
        """
        if not expanded:
            self._expanded.discard(reply_id)
            return True
        if reply_id not in self._fetched:
            return False
        self._expanded.add(reply_id)
        return True

    def begin_vote(self, reply_id: ReplyId) -> bool:
        """Claim the single vote slot for a reply.

        Returns:
            False if a vote is already in flight for this reply
        """
        if reply_id in self._voting:
            return False
        self._voting.add(reply_id)
        return True

    def end_vote(self, reply_id: ReplyId) -> None:
        self._voting.discard(reply_id)

    def clear(self) -> None:
        """Drop everything."""
        self._nodes.clear()
        self._top_level.clear()
        self._children.clear()
        self._location.clear()
        self._expanded.clear()
        self._fetched.clear()
        self._voting.clear()

    # Internals

    def _merge(
        self, node: ReplyNode, parent_id: Optional[ReplyId], ids: list[ReplyId]
    ) -> None:
        """Append a fetched reply to a scope, or refresh it if already there."""
        if node.id in self._location and self._location[node.id] == parent_id:
            self._update(node)
            return

        # An id arriving in a new scope leaves its old one
        self._detach(node.id)
        self._nodes[node.id] = node
        self._location[node.id] = parent_id
        ids.append(node.id)

    def _update(self, node: ReplyNode) -> None:
        """Swap in fresh data for a cached reply; depth and parent stay fixed."""
        current = self._nodes[node.id]
        self._nodes[node.id] = node.model_copy(
            update={"depth": current.depth, "parent_id": current.parent_id}
        )

    def _detach(self, reply_id: ReplyId) -> None:
        if reply_id not in self._location:
            return
        parent_id = self._location.pop(reply_id)
        ids = self._top_level if parent_id is None else self._children.get(parent_id, [])
        if reply_id in ids:
            ids.remove(reply_id)

    def _drop_subtree(self, reply_id: ReplyId) -> None:
        self._nodes.pop(reply_id, None)
        self._expanded.discard(reply_id)
        self._fetched.discard(reply_id)
        for child_id in self._children.pop(reply_id, []):
            self._location.pop(child_id, None)
            self._drop_subtree(child_id)
