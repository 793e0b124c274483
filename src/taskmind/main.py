"""Command-line entry point for TaskMind."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass

import structlog

from taskmind.config import Settings, get_settings
from taskmind.errors import ExtractionFailed, MissingCredential, TaskNotFoundError
from taskmind.extraction.engine import TaskExtractor
from taskmind.logging import get_logger, setup_logging
from taskmind.models import AppSettings, MergeMode, SourceCredential, TaskRecord
from taskmind.pipeline import SyncPipeline, SyncResult, SyncStatus
from taskmind.sources.chat import ChatFetcher
from taskmind.sources.gmail import GmailFetcher
from taskmind.store.backup import DriveBackup
from taskmind.store.persistence import JsonFileStore, KeyValueStore
from taskmind.store.settings import load_app_settings, save_app_settings
from taskmind.store.task_store import TaskStore

log = get_logger("taskmind.main")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NEEDS_CONFIG = 2


@dataclass
class App:
    """Everything a command needs, wired from settings."""

    settings: Settings
    persistence: KeyValueStore
    app_settings: AppSettings
    store: TaskStore
    pipeline: SyncPipeline
    credential: SourceCredential | None


def build_app(settings: Settings, persistence: KeyValueStore | None = None) -> App:
    """Wire the store, sources and extractor from settings."""
    persistence = persistence or JsonFileStore(settings.data_dir)
    app_settings = load_app_settings(persistence)

    credential = None
    if settings.google_access_token is not None:
        token = settings.google_access_token.get_secret_value()
        if token:
            credential = SourceCredential(
                access_token=token, enhanced_tier=settings.google_enhanced_tier
            )

    backup = None
    if credential and app_settings.google_drive_connected and app_settings.auto_save:
        backup = DriveBackup(credential.access_token, timeout=settings.fetch_timeout)

    store = TaskStore(persistence, backup=backup, backup_filename=settings.backup_filename)
    store.load()

    fetchers = [
        GmailFetcher(max_items=settings.max_items_per_source, timeout=settings.fetch_timeout),
        ChatFetcher(max_items=settings.max_items_per_source, timeout=settings.fetch_timeout),
    ]
    extractor = TaskExtractor(model=settings.gemini_model, timeout=settings.extraction_timeout)
    pipeline = SyncPipeline(store, extractor, fetchers=fetchers)
    return App(
        settings=settings,
        persistence=persistence,
        app_settings=app_settings,
        store=store,
        pipeline=pipeline,
        credential=credential,
    )


def format_task(task: TaskRecord) -> str:
    """One-line rendering for the terminal."""
    mark = "x" if task.is_completed else " "
    due = f" (due {task.due_date})" if task.due_date else ""
    return (
        f"[{mark}] {task.id}  {task.priority.value:<6}  {task.source_type.value:<6}  "
        f"{task.title}{due}  {task.confidence_score:.0f}%"
    )


def _print_result(result: SyncResult) -> int:
    print(result.message)
    for task in result.tasks:
        print(format_task(task))
    return EXIT_OK if result.status is not SyncStatus.BUSY else EXIT_FAILED


async def _run_pipeline(app: App, args: argparse.Namespace) -> int:
    policy = app.app_settings.to_policy(app.settings.gemini_api_key)
    try:
        if args.command == "sync":
            if app.credential is None:
                print("No Google access token. Set GOOGLE_ACCESS_TOKEN and try again.")
                return EXIT_NEEDS_CONFIG
            result = await app.pipeline.sync(app.credential, policy, mode=MergeMode(args.mode))
        else:
            text = sys.stdin.read() if args.file == "-" else _read_file(args.file)
            result = await app.pipeline.analyze_text(text, policy, mode=MergeMode(args.mode))
    except MissingCredential as exc:
        print(f"{exc} (taskmind configure --api-key KEY)")
        return EXIT_NEEDS_CONFIG
    except ExtractionFailed as exc:
        print(f"Analysis failed: {exc}. Try again.")
        return EXIT_FAILED
    finally:
        await app.store.wait_for_backups()
    return _print_result(result)


def _read_file(path: str) -> str:
    with open(path, encoding="utf-8") as fh:
        return fh.read()


async def _run_store_command(app: App, args: argparse.Namespace) -> int:
    if args.command == "list":
        tasks = app.store.tasks
        if args.pending:
            tasks = [t for t in tasks if not t.is_completed]
        if not tasks:
            print("No tasks.")
        for task in tasks:
            print(format_task(task))
        return EXIT_OK

    if args.command == "toggle":
        try:
            task = await app.store.toggle(args.task_id)
        except TaskNotFoundError as exc:
            print(exc)
            return EXIT_FAILED
        await app.store.wait_for_backups()
        print(format_task(task))
        return EXIT_OK

    # clear
    if not args.yes:
        print("Refusing to clear all tasks without --yes.")
        return EXIT_FAILED
    await app.store.clear()
    print("All data cleared.")
    return EXIT_OK


def _configure(app: App, args: argparse.Namespace) -> int:
    updates: dict[str, object] = {}
    if args.api_key is not None:
        updates["gemini_api_key"] = args.api_key
    if args.instructions is not None:
        updates["custom_instructions"] = args.instructions or None
    if args.auto_save is not None:
        updates["auto_save"] = args.auto_save
    if args.drive is not None:
        updates["google_drive_connected"] = args.drive

    current = app.app_settings.model_copy(update=updates)
    if updates:
        save_app_settings(app.persistence, current)
    key_state = "set" if current.gemini_api_key else "not set"
    print(f"API key: {key_state}")
    print(f"Custom instructions: {current.custom_instructions or '(none)'}")
    print(f"Auto save: {current.auto_save}  Drive backup: {current.google_drive_connected}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskmind",
        description="Extract actionable tasks from Gmail, Google Chat and pasted text",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG regardless of LOG_LEVEL"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    modes = [m.value for m in MergeMode]
    sync = sub.add_parser("sync", help="Scan Gmail (and Chat for Workspace accounts)")
    sync.add_argument(
        "--mode",
        choices=modes,
        default=MergeMode.REPLACE.value,
        help=(
            "replace (default) swaps the stored list for this scan, including "
            "completion state; an empty scan leaves an empty list. "
            "append-dedup keeps stored tasks"
        ),
    )

    analyze = sub.add_parser("analyze", help="Extract tasks from a text file or stdin")
    analyze.add_argument("file", nargs="?", default="-", help="Path, or - for stdin")
    analyze.add_argument("--mode", choices=modes, default=MergeMode.APPEND_DEDUP.value)

    list_cmd = sub.add_parser("list", help="Show stored tasks")
    list_cmd.add_argument("--pending", action="store_true", help="Hide completed tasks")

    toggle_cmd = sub.add_parser("toggle", help="Mark a task done or not done")
    toggle_cmd.add_argument("task_id")

    clear = sub.add_parser("clear", help="Delete every stored task")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    configure = sub.add_parser("configure", help="Show or change saved settings")
    configure.add_argument("--api-key", help="Gemini API key")
    configure.add_argument("--instructions", help="Custom extraction rules ('' to remove)")
    configure.add_argument(
        "--auto-save", action=argparse.BooleanOptionalAction, default=None
    )
    configure.add_argument("--drive", action=argparse.BooleanOptionalAction, default=None)
    return parser


async def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run one command."""
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)
    structlog.contextvars.bind_contextvars(command=args.command)

    app = build_app(get_settings())
    log.debug("command_started", tasks=len(app.store.tasks))

    if args.command in ("sync", "analyze"):
        return await _run_pipeline(app, args)
    if args.command == "configure":
        return _configure(app, args)
    return await _run_store_command(app, args)


def run() -> None:
    """Run the application."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
