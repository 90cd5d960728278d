"""
Main entry point for ChatCut.
"""

import argparse
import sys
from typing import List, Optional

from ..config import load_config, store_api_key
from ..errors import ChatCutError
from ..utils import format_time, format_time_detailed
from ..utils.logging_utils import get_logger
from .session import EditorSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatcut", description="ChatCut - conversational video editor")
    parser.add_argument("--env", help="Path to a .env file (default: search from the working directory)")
    parser.add_argument("--projects-dir", help="Override CHATCUT_PROJECTS_DIR")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print progress to the console")
    parser.add_argument("--log", action="store_true", help="Also write a log file under CHATCUT_LOG_DIR")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new", help="Create a project")
    p.add_argument("name")

    sub.add_parser("list", help="List projects, most recent first")

    p = sub.add_parser("delete", help="Delete a project")
    p.add_argument("project_id")

    p = sub.add_parser("rename", help="Rename a project")
    p.add_argument("project_id")
    p.add_argument("name")

    p = sub.add_parser("import", help="Import and analyze a video into a project")
    p.add_argument("project_id")
    p.add_argument("video")

    p = sub.add_parser("edit", help="Send an editing instruction")
    p.add_argument("project_id")
    p.add_argument("instruction")

    p = sub.add_parser("segments", help="Show the timeline")
    p.add_argument("project_id")

    p = sub.add_parser("transcript", help="Show the transcript")
    p.add_argument("project_id")
    p.add_argument("--cards", action="store_true", help="Only kept material, grouped into cards")

    p = sub.add_parser("toggle", help="Keep or cut one segment")
    p.add_argument("project_id")
    p.add_argument("segment_id")

    p = sub.add_parser("export", help="Render the edited video")
    p.add_argument("project_id")
    p.add_argument("output")

    p = sub.add_parser("preview", help="Play the edit headless and report skips")
    p.add_argument("project_id")
    p.add_argument("--seconds", type=float, default=None, help="Stop after this many wall-clock seconds")
    p.add_argument("--rate", type=float, default=1.0, help="Playback speed multiplier")

    p = sub.add_parser("set-key", help="Store the OpenAI API key in .env")
    p.add_argument("key")
    return parser


def _print_segments(session: EditorSession):
    if session.store.is_empty:
        print("No timeline yet. Import a video first.")
        return
    for seg in session.store.segments:
        mark = "KEEP" if seg.active else "CUT "
        print(f"  [{mark}] {seg.id:<14} {format_time_detailed(seg.start)} - {format_time_detailed(seg.end)}"
              f"  {seg.description}")
    kept = sum(end - start for start, end in session.store.active_intervals())
    print(f"Kept {format_time(kept)} of {format_time(session.store.duration)}")


def _print_transcript(session: EditorSession, cards: bool):
    if cards:
        for card in session.transcript_cards():
            print(f"[{format_time(card.start)} - {format_time(card.end)}] {card.text}")
        return
    for line in session.transcript_lines():
        item = line.item
        print(f"[{format_time_detailed(item.start)}] ({item.category}) {item.text}")


def _run_preview(session: EditorSession, seconds: Optional[float], rate: float):
    if hasattr(session.player, "rate"):
        session.player.rate = rate

    def report(from_time, to_time):
        if to_time is None:
            print(f"  {format_time_detailed(from_time)}  end of edit")
        else:
            print(f"  {format_time_detailed(from_time)}  skip -> {format_time_detailed(to_time)}")

    session.playback.on_redirect = report
    session.playback.play()
    session.scheduler.run(duration=seconds, until=lambda: not session.playback.is_playing)
    session.playback.pause()
    print(f"Stopped at {format_time_detailed(session.state.current_time)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for ChatCut."""
    args = _build_parser().parse_args(argv)

    if args.command == "set-key":
        store_api_key(args.key, args.env or ".env")
        print("API key saved.")
        return 0

    config = load_config(args.env)
    if args.projects_dir:
        config.projects_dir = args.projects_dir
    config.verbose = config.verbose or args.verbose
    logger = get_logger(
        log_file=config.log_file,
        verbose=config.verbose,
        label=args.command if args.log else None,
        output_dir=config.log_dir
    )
    session = EditorSession(config=config, logger=logger)

    try:
        if args.command == "new":
            project = session.new_project(args.name)
            print(project.id)
        elif args.command == "list":
            projects = session.projects_list()
            if not projects:
                print("No projects.")
            for project in projects:
                print(f"{project.id}  {project.name:<30} {format_time(project.duration)}")
        elif args.command == "delete":
            session.delete_project(args.project_id)
            print(f"Deleted {args.project_id}")
        elif args.command == "rename":
            session.select_project(args.project_id)
            session.rename_project(args.name)
            print(f"Renamed to {session.project.name}")
        elif args.command == "import":
            session.select_project(args.project_id)
            result = session.import_media(args.video)
            print(f"Imported {format_time(result.duration)} with {len(result.transcript)} transcript items.")
            print(session.chat.last().text)
        elif args.command == "edit":
            session.select_project(args.project_id)
            session.set_tts_enabled(False)
            result = session.apply_instruction(args.instruction)
            print(result.reply)
            if result.error:
                print(f"Not applied: {result.error}")
            _print_segments(session)
        elif args.command == "segments":
            session.select_project(args.project_id)
            _print_segments(session)
        elif args.command == "transcript":
            session.select_project(args.project_id)
            _print_transcript(session, args.cards)
        elif args.command == "toggle":
            session.select_project(args.project_id)
            seg = session.toggle_segment(args.segment_id)
            print(f"{seg.id} is now {'kept' if seg.active else 'cut'}")
        elif args.command == "export":
            session.select_project(args.project_id)
            print(f"Exported to {session.export(args.output)}")
        elif args.command == "preview":
            session.select_project(args.project_id)
            _run_preview(session, args.seconds, args.rate)
    except (ChatCutError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
