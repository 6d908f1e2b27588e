"""Sort controller.

Owns the active sort key. Changing it clears the top-level list and reloads
page 1; requests issued under the previous key are left to finish and are
dropped on arrival by comparing their captured epoch with the current one.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import logfire

from debate.domain.value import SortKey

from .base import Service
from .tree_cache import TreeCache

if TYPE_CHECKING:
    from .pagination import PaginationController


@dataclass
class SortState:
    """Active sort key plus a counter bumped on every change."""

    key: SortKey
    epoch: int = 0


class SortController(Service):
    """Domain service for switching the reply ordering."""

    def __init__(
        self,
        sort_state: SortState,
        cache: TreeCache,
        pagination: "PaginationController",
    ) -> None:
        """Initialize sort controller.

        Args:
            sort_state: Sort state shared with the pagination controller
            cache: Tree cache owned by the thread
            pagination: Pagination controller used for the reload
        """
        self.sort_state = sort_state
        self.cache = cache
        self.pagination = pagination

    @property
    def key(self) -> SortKey:
        return self.sort_state.key

    async def change(self, key: SortKey) -> bool:
        """Switch to a new sort key and reload the top level.

        Loaded child lists are kept as they are and may reflect the previous
        ordering until their parent is collapsed and re-expanded.

        Args:
            key: New sort key

        Returns:
            True if page 1 under the new key was applied, False if the key
            was already active or another change overtook this one

        Raises:
            ReplyApiError: If the reload fails (the list stays empty)
        """
        if key == self.sort_state.key:
            return False

        with logfire.span(
            "sort_controller.change",
            previous=self.sort_state.key.value,
            sort_key=key.value,
        ):
            self.sort_state.key = key
            self.sort_state.epoch += 1
            self.cache.replace_top_level([], append=False)
            self.pagination.reset_top_level()

            return await self.pagination.load_first_page()
