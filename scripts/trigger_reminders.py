"""CLI script to manually trigger a reminder dispatch run."""
from __future__ import annotations

import argparse

from daybook.tasks.reminders import dispatch_due_reminders


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Manually trigger reminder dispatch",
    )
    parser.add_argument(
        "--at",
        type=str,
        help="Dispatch as if it were this ISO-8601 instant (default: now, UTC)",
    )
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Queue task asynchronously instead of running immediately",
    )

    args = parser.parse_args()

    label = args.at or "now"
    print(f"Dispatching reminders due at {label}")
    if args.use_async:
        task = dispatch_due_reminders.apply_async(args=(args.at,))
        print(f"Task queued: {task.id}")
    else:
        result = dispatch_due_reminders.run(args.at)
        print(f"Result: {result}")


if __name__ == "__main__":
    main()
