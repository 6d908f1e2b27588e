"""Domain services."""

from .auth import CredentialProvider, with_auth_retry
from .base import Service
from .mutation_router import MutationRouter
from .pagination import PaginationController
from .sort_controller import SortController, SortState
from .tree_cache import TreeCache
from .vote_reconciler import VoteReconciler, optimistic_vote

__all__ = [
    "CredentialProvider",
    "MutationRouter",
    "PaginationController",
    "Service",
    "SortController",
    "SortState",
    "TreeCache",
    "VoteReconciler",
    "optimistic_vote",
    "with_auth_retry",
]
