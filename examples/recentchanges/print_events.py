#!/usr/bin/env python3
"""
Recent Changes Printer

Prints every change happening on Wikimedia wikis as it arrives.

Usage:
    python print_events.py                      # all wikis
    python print_events.py "*.wikipedia.org"    # only Wikipedias
    python print_events.py en.wikipedia.org 2023-01-01T00:00:00Z
"""

import logging
import sys

from wikistreams import RecentChangesEvent, RecentChangesStream


def print_change(event: RecentChangesEvent) -> None:
    """Print one line per change."""
    sizes = ""
    if event.type in ("edit", "new"):
        sizes = f" ({event.length.new - event.length.old:+d})"
    print(f"[{event.meta.date_time}] {event.meta.domain} {event.type}: {event.title} by {event.user}{sizes}")


def print_error(error: Exception) -> None:
    print(f"⚠️  {error}", file=sys.stderr)


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    stream = RecentChangesStream()
    if len(sys.argv) > 1:
        stream.filter_by_origin(sys.argv[1])
    if len(sys.argv) > 2:
        stream.resume_since(sys.argv[2])

    print("=" * 50)
    print("  Wikimedia Recent Changes")
    print("=" * 50)
    stream.run_forever(print_change, print_error)


if __name__ == "__main__":
    main()
