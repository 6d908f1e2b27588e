"""Repository interfaces for the debate reply domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the adapter layer.
"""

from debate.domain.repository.reply import ReplyRepository

__all__ = [
    "ReplyRepository",
]
