"""
Command-line tools for the reminder synchronizer.

  planwise-sync derive --template template.json
  planwise-sync replay events.jsonl [--in-memory]
  planwise-sync list --source-module task [--entity UUID]
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from planwise.core.bootstrap import ReminderSyncContainer
from planwise.core.config import Settings, configure_logging, settings as default_settings
from planwise.core.reminders.cron_deriver import derive_reminder_cron
from planwise.core.task.events import parse_event
from planwise.core.task.models import TaskTemplateSnapshot

logger = logging.getLogger(__name__)


def _read_events(path: Path) -> List[dict]:
    events = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_no}: invalid JSON ({e})") from e
    return events


def cmd_derive(args: argparse.Namespace) -> int:
    try:
        with open(args.template, "r", encoding="utf-8") as f:
            template = TaskTemplateSnapshot.model_validate(json.load(f))
    except json.JSONDecodeError as e:
        print(f"Error: {args.template}: invalid JSON ({e})", file=sys.stderr)
        return 2
    except ValidationError as e:
        print(f"Error: invalid template: {e}", file=sys.stderr)
        return 2
    cron_expression = derive_reminder_cron(template.time_config, template.reminder_config)
    print(cron_expression or "none")
    return 0


async def _replay(container: ReminderSyncContainer, events: List[dict]) -> int:
    for index, raw in enumerate(events, start=1):
        event = parse_event(raw)
        outcome = await container.service.process(event)
        print(f"{index}\t{event.kind}\t{outcome.value}")
    return 0


def cmd_replay(args: argparse.Namespace, cfg: Settings) -> int:
    try:
        events = _read_events(Path(args.events))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    container = ReminderSyncContainer.build(cfg, in_memory=args.in_memory, database_url=args.database_url)
    try:
        return asyncio.run(_replay(container, events))
    except ValidationError as e:
        print(f"Error: invalid event: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Error: replay stopped: {e}", file=sys.stderr)
        return 1
    finally:
        logger.info("Replay stats: %s", container.metrics.get_stats())
        container.close()


def cmd_list(args: argparse.Namespace, cfg: Settings) -> int:
    container = ReminderSyncContainer.build(cfg, database_url=args.database_url)
    try:
        if args.entity:
            tasks = asyncio.run(container.repository.find_by_source(args.source_module, args.entity))
        else:
            tasks = asyncio.run(container.repository.list_by_module(args.source_module))
    finally:
        container.close()
    print(json.dumps([t.model_dump(mode="json") for t in tasks], indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="planwise-sync", description="Task reminder schedule synchronizer tools.")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL (default: DATABASE_PATH from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    derive = sub.add_parser("derive", help="Print the reminder cron expression for a template JSON file")
    derive.add_argument("--template", required=True, help="Path to a task template JSON document")

    replay = sub.add_parser("replay", help="Apply template lifecycle events from a JSONL file")
    replay.add_argument("events", help="Path to JSONL file, one event per line")
    replay.add_argument("--in-memory", action="store_true", help="Use an in-memory schedule store (dry run)")

    listing = sub.add_parser("list", help="List stored schedule tasks")
    listing.add_argument("--source-module", default=None, help="Source module (default: from settings)")
    listing.add_argument("--entity", default=None, help="Source entity id")
    return parser


def main(argv: Optional[List[str]] = None, cfg: Optional[Settings] = None) -> int:
    cfg = cfg or default_settings
    args = build_parser().parse_args(argv)
    configure_logging(cfg)
    if args.command == "derive":
        return cmd_derive(args)
    if args.command == "replay":
        return cmd_replay(args, cfg)
    if getattr(args, "source_module", None) is None:
        args.source_module = cfg.reminder_source_module
    return cmd_list(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
