from __future__ import annotations

import argparse
import datetime as _dt
import json
import sys
from pathlib import Path
from typing import Any

from todolist.app import TodoApp
from todolist.config import load_config
from todolist.filters import QuickFilter, apply_filters, available_tags, parse_tags
from todolist.models.task import TaskRecord
from todolist.observability import configure_logging
from todolist.persistence import PersistenceError

_MUTATING = {"add", "done", "undo", "edit", "rm", "complete-all", "clear-completed"}


def _parse_due(value: str) -> _dt.datetime:
    try:
        return _dt.datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid due date: {value!r}") from exc


def _resolve_id(app: TodoApp, prefix: str) -> str:
    """Accept a full id or any unique prefix of one."""
    p = (prefix or "").strip()
    if not p:
        raise ValueError("task id must be non-empty")
    matches = [t.id for t in app.store.list_tasks() if t.id.startswith(p)]
    if not matches:
        raise ValueError(f"no task with id {p}")
    if len(matches) > 1:
        raise ValueError(f"ambiguous task id {p}")
    return matches[0]


def _format_task(task: TaskRecord) -> str:
    mark = "x" if task.is_completed else " "
    parts = [f"{task.id[:8]}  [{mark}] {task.title}"]
    if task.due_date is not None:
        parts.append(f"(due {task.due_date.date().isoformat()})")
    if task.tags:
        parts.append(" ".join(f"#{t}" for t in task.tags))
    return "  ".join(parts)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("todolist")
    parser.add_argument("--data-file", help="Path to tasks.json (default: $TODO_DATA_FILE or data/tasks.json)")
    parser.add_argument(
        "--log-level", choices=["debug", "info", "warning", "error"], default="warning"
    )
    sub = parser.add_subparsers(dest="cmd")

    p_list = sub.add_parser("list", help="List tasks")
    p_list.add_argument(
        "--filter",
        default=QuickFilter.ALL.value,
        help="All, Today, This week or Overdue",
    )
    p_list.add_argument("--tag")
    p_list.add_argument("--json", action="store_true")

    p_add = sub.add_parser("add", help="Add a task")
    p_add.add_argument("title")
    p_add.add_argument("--due", type=_parse_due)
    p_add.add_argument("--tags", help="Comma-separated tags")

    for name, help_text in (
        ("done", "Mark a task completed"),
        ("undo", "Mark a task not completed"),
        ("rm", "Delete a task"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("id")

    p_edit = sub.add_parser("edit", help="Edit a task")
    p_edit.add_argument("id")
    p_edit.add_argument("--title")
    due_group = p_edit.add_mutually_exclusive_group()
    due_group.add_argument("--due", type=_parse_due)
    due_group.add_argument("--clear-due", action="store_true")
    p_edit.add_argument("--tags", help="Comma-separated tags (replaces existing)")

    sub.add_parser("complete-all", help="Mark every task completed")
    sub.add_parser("clear-completed", help="Delete every completed task")
    sub.add_parser("tags", help="List distinct tags")
    return parser


def _run_command(app: TodoApp, args: Any) -> int:
    cmd = args.cmd
    if cmd == "list":
        quick = QuickFilter.parse(args.filter)
        tasks = apply_filters(app.store.list_tasks(), quick, args.tag)
        if args.json:
            print(json.dumps([t.to_json_dict() for t in tasks], indent=2, ensure_ascii=False))
        else:
            for t in tasks:
                print(_format_task(t))
        return 0
    if cmd == "tags":
        for tag in available_tags(app.store.list_tasks()):
            print(tag)
        return 0
    if cmd == "add":
        task = app.store.add(args.title, due_date=args.due, tags=parse_tags(args.tags))
        if task is None:
            sys.stderr.write("error: title must be non-empty\n")
            return 2
        print(task.id)
        return 0
    if cmd in {"done", "undo"}:
        app.store.update(_resolve_id(app, args.id), is_completed=(cmd == "done"))
        return 0
    if cmd == "rm":
        app.store.remove(_resolve_id(app, args.id))
        return 0
    if cmd == "edit":
        task_id = _resolve_id(app, args.id)
        kwargs: dict[str, Any] = {}
        if args.title is not None:
            kwargs["title"] = args.title
        if args.clear_due:
            kwargs["due_date"] = None
        elif args.due is not None:
            kwargs["due_date"] = args.due
        if args.tags is not None:
            kwargs["tags"] = parse_tags(args.tags)
        if not kwargs:
            raise ValueError("no fields to update")
        app.store.update(task_id, **kwargs)
        return 0
    if cmd == "complete-all":
        app.store.complete_all()
        return 0
    if cmd == "clear-completed":
        removed = app.store.clear_completed()
        print(f"removed {removed}")
        return 0
    return 2


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        raise SystemExit(0)

    configure_logging(args.log_level)
    env: dict[str, str] = {}
    if args.data_file:
        env["TODO_DATA_FILE"] = str(Path(args.data_file))
    app = TodoApp(load_config(env))
    try:
        try:
            warning = app.load()
        except PersistenceError as exc:
            sys.stderr.write(f"error: {exc}\n")
            raise SystemExit(1)
        if warning:
            sys.stderr.write(f"warning: {warning}\n")
        try:
            code = _run_command(app, args)
        except ValueError as exc:
            sys.stderr.write(f"error: {exc}\n")
            raise SystemExit(2)
        if code == 0 and args.cmd in _MUTATING:
            try:
                app.save_now()
            except PersistenceError as exc:
                sys.stderr.write(f"error: {exc}\n")
                raise SystemExit(1)
        raise SystemExit(code)
    finally:
        app.autosave.cancel()
        app.close()


if __name__ == "__main__":
    main()
