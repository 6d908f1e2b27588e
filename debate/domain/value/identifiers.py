"""Strongly typed identifiers for debate reply entities.

The backend hands out opaque string ids; NewType keeps reply ids from being
mixed up with user or room ids at call sites.
"""

from typing import NewType

ReplyId = NewType("ReplyId", str)
UserId = NewType("UserId", str)
DebateRoomId = NewType("DebateRoomId", str)
