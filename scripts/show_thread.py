#!/usr/bin/env python3
"""Open an opinion's reply thread against the configured API and print it."""

import argparse
import asyncio
import sys

import logfire

from debate.application import ReplyThreadFactory
from debate.config import Settings
from debate.domain.value import DebateRoomId, OpinionRef, SortKey, UserId
from debate.interface import flatten_thread
from debate.util.di.container import create_container
from debate.util.logging import setup_logging
from debate.util.observability import configure_logfire


async def show(opinion: OpinionRef, sort_key: SortKey, expand: bool) -> int:
    container = create_container()
    try:
        async with container() as request_container:
            factory = await request_container.get(ReplyThreadFactory)
            thread = factory.create(opinion)

            result = await thread.change_sort(sort_key)
            if not result.value:
                result = await thread.open()
            if not result.ok:
                print(f"Could not load replies: {result.message}", file=sys.stderr)
                return 1

            if expand:
                for node in thread.top_level():
                    if node.child_count:
                        await thread.toggle_expand(node.id)

            for row in flatten_thread(thread):
                indent = "  " * row.depth
                votes = f"[{row.upvote_count}{'*' if row.upvoted else ''}]"
                print(f"{indent}{votes} {row.username} · {row.time_label}: {row.content}")
                if row.replies_label and not row.is_expanded:
                    print(f"{indent}  ({row.replies_label})")
            return 0
    finally:
        await container.close()


def main() -> int:
    """Print a reply thread and log any failure to Logfire."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("debate_room_id")
    parser.add_argument("participant_user_id")
    parser.add_argument(
        "--sort", choices=[key.value for key in SortKey], default=SortKey.BEST.value
    )
    parser.add_argument("--expand", action="store_true", help="Expand top-level replies")
    args = parser.parse_args()

    settings = Settings()
    setup_logging(settings)
    configure_logfire(settings)

    opinion = OpinionRef(
        debate_room_id=DebateRoomId(args.debate_room_id),
        participant_user_id=UserId(args.participant_user_id),
    )

    try:
        return asyncio.run(show(opinion, SortKey(args.sort), args.expand))
    except Exception as e:
        logfire.error(
            "Showing reply thread failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
