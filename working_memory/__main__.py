"""Entry point for the working-memory CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import NoReturn


def run_version() -> None:
    """Print version information."""
    from working_memory import __version__

    print(f"working-memory {__version__}")


def run_show(args: argparse.Namespace) -> int:
    """Print the events of a session stream.

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    from working_memory.activity.session import SessionContextResolver
    from working_memory.activity.stream import StreamWriter, read_stream
    from working_memory.config import get_settings
    from working_memory.core.errors import StreamReadError
    from working_memory.core.models import ActivityEvent
    from working_memory.core.paths import ActivityPaths, is_safe_session_id

    settings = get_settings()
    paths = ActivityPaths.resolve(settings)

    session_id = args.session
    if session_id and not is_safe_session_id(session_id):
        print(f"Error: invalid session id: {session_id!r}", file=sys.stderr)
        return 1
    if not session_id:
        identity = SessionContextResolver(settings).resolve(paths)
        if identity.is_sentinel:
            print("No active session (descriptor missing or unreadable).", file=sys.stderr)
            print(f"Descriptor: {paths.session_file}", file=sys.stderr)
            return 1
        session_id = identity.session_id

    stream_path = StreamWriter(paths.activity_dir).stream_path(session_id)
    if not stream_path.exists():
        print(f"No stream for session {session_id}: {stream_path}", file=sys.stderr)
        return 1

    try:
        events = list(read_stream(stream_path, strict=args.strict))
    except StreamReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.limit:
        events = events[-args.limit :]

    for event in events:
        if args.json:
            print(event.to_json_line())
        elif isinstance(event, ActivityEvent):
            result = str(event.extensions.get("result", ""))
            duration = event.extensions.get("duration_ms")
            suffix = f" ({duration} ms)" if duration else ""
            print(
                f"{event.timestamp.isoformat()}  {event.event_type:<14} "
                f"{result:<8} {event.context or ''}{suffix}"
            )
        else:
            suffix = f" ({event.duration_ms} ms)" if event.duration_ms else ""
            print(
                f"{event.timestamp.isoformat()}  {'legacy:' + event.tool:<14} "
                f"{event.result:<8} {event.context}{suffix}"
            )
    return 0


def run_log(args: argparse.Namespace) -> int:
    """Append one event to the current session stream.

    Returns 0 whether or not the event was written, matching the hook
    contract; ``--strict`` turns a write failure into exit code 1.
    """
    from working_memory.activity.logger import ActivityLogger

    result = ActivityLogger().log_activity(
        args.event_type,
        args.context,
        args.result,
        args.duration_ms / 1000 if args.duration_ms else 0,
    )
    if args.verbose:
        outcome = {
            "written": result.written,
            "skipped": result.skipped,
            "skip_reason": result.skip_reason,
            "stream_path": result.stream_path,
            "error": str(result.error) if result.error else None,
        }
        print(json.dumps(outcome))
    if args.strict and result.error is not None:
        return 1
    return 0


def main() -> NoReturn:
    """Main entry point with subcommand support."""
    # Fast-path: bypass argparse entirely for hook dispatch
    if len(sys.argv) >= 2 and sys.argv[1] == "hook":
        try:
            from working_memory.hooks.dispatcher import run_hook

            run_hook(sys.argv[2] if len(sys.argv) > 2 else "")
        except Exception:
            pass  # Fail-open
        sys.exit(0)

    parser = argparse.ArgumentParser(
        prog="working-memory",
        description="Session activity stream for behavioral pattern learning",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    # Hook command (handled by the fast-path above; listed for --help)
    hook_parser = subparsers.add_parser(
        "hook",
        help="Handle a Claude Code hook event read from stdin",
    )
    hook_parser.add_argument("event", help="Hook event, e.g. post-tool-use")

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        help="Print a session's activity stream",
    )
    show_parser.add_argument(
        "--session",
        default="",
        help="Session id (default: the current session)",
    )
    show_parser.add_argument(
        "--json",
        action="store_true",
        help="Print raw JSON lines",
    )
    show_parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="Only print the last N events",
    )
    show_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unreadable lines instead of skipping them",
    )

    # Log command
    log_parser = subparsers.add_parser(
        "log",
        help="Append an event to the current session's stream",
    )
    log_parser.add_argument("event_type", help="Event type, e.g. realization")
    log_parser.add_argument("--context", default="", help="Already-sanitized context")
    log_parser.add_argument("--result", default="success", help="Result tag")
    log_parser.add_argument(
        "--duration-ms",
        type=int,
        default=0,
        help="Duration in milliseconds",
    )
    log_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit 1 when the event could not be written",
    )
    log_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print the outcome as JSON",
    )

    args = parser.parse_args()

    from pydantic import ValidationError

    from working_memory.config import get_settings
    from working_memory.core.logging import configure_logging

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Error: invalid working-memory settings: {e}", file=sys.stderr)
        sys.exit(1)
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    if args.version:
        run_version()
        sys.exit(0)

    if args.command == "show":
        sys.exit(run_show(args))
    elif args.command == "log":
        sys.exit(run_log(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
