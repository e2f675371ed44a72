"""Command line entry point for topic lookups.

Usage:
    topic-help lookup CONTEXT TOPIC     Print the links for TOPIC
    topic-help complete CONTEXT PREFIX  Show completions of PREFIX
    topic-help export NAME [-o FILE]    Write a manual as a tab-delimited index
    topic-help list [CONTEXT]           List loaded manuals
"""

import argparse
import logging
import sys
from typing import Optional

from topic_help.api import TopicHelp


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="topic-help",
                                     description="Context-sensitive topic lookup")
    parser.add_argument("--config", help="Configuration file (default: per-user manuals.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("lookup", help="Look up a topic")
    p.add_argument("context")
    p.add_argument("topic")

    p = sub.add_parser("complete", help="Complete a topic prefix")
    p.add_argument("context")
    p.add_argument("prefix", nargs="?", default="")

    p = sub.add_parser("export", help="Export a manual as a tab-delimited index")
    p.add_argument("name")
    p.add_argument("-o", "--output", help="Write to this file instead of stdout")

    p = sub.add_parser("list", help="List manuals")
    p.add_argument("context", nargs="?")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    help_index = TopicHelp()
    report = help_index.load_file(args.config)
    if not report.ok:
        for path, reason in report.failures.items():
            print(f"warning: {path}: {reason}", file=sys.stderr)

    if args.command == "lookup":
        result = help_index.lookup(args.context, args.topic)
        if not result.found:
            print(result.message, file=sys.stderr)
            return 1
        for hit in result.hits:
            print(f"{hit.topic}\t{hit.manual}\t{hit.link}")
        return 0

    if args.command == "complete":
        session = help_index.begin_completion_session(args.context)
        result = help_index.session_type(session, args.prefix)
        help_index.session_cancel(session)
        print(f"{result.state.value}\t{result.extension or ''}")
        for topic in result.topics:
            print(topic)
        return 0 if result.matches else 1

    if args.command == "export":
        if args.output:
            ok = help_index.export_manual_to_file(args.name, args.output)
            if not ok:
                print(help_index.last_message, file=sys.stderr)
            return 0 if ok else 1
        text = help_index.export_manual(args.name)
        if text is None:
            print(help_index.last_message, file=sys.stderr)
            return 1
        sys.stdout.write(text)
        return 0

    for summary in help_index.list_manuals_for_context(args.context):
        modes = ", ".join(summary.modes)
        print(f"{summary.name}\t{summary.topic_count}\t{modes}\t{summary.source_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
