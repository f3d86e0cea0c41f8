"""View and edit the weekly class schedule from the command line.

Every change goes through the same intents a graphical front end would send,
and the schedule file is saved when the command finishes.

Run with: python scripts/plan.py show
JSON:     python scripts/plan.py show --json
Add:      python scripts/plan.py add --name Algebra --url https://meet.example/alg --type Tutorial
Edit:     python scripts/plan.py edit 0 --name "Linear Algebra"
Remove:   python scripts/plan.py remove 0
Assign:   python scripts/plan.py assign 0 1 2      # Monday 10:00 -> activity 2
Clear:    python scripts/plan.py assign 0 1
Open:     python scripts/plan.py open 0 1          # launch the meeting link

Days are 0=Monday .. 4=Friday, slots 0..5 start at 08:00 in 2-hour steps.
The file location comes from CLASSPLAN_DATA_FILE (default ~/.config/plan.json).

Exit codes:
  0 = success
  1 = error (message on stderr)
"""

import argparse
import functools
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.classplan.config import get_config  # noqa: E402
from src.classplan.dispatcher import Dispatcher  # noqa: E402
from src.classplan.intents import (  # noqa: E402
    ActivityFieldChanged,
    ActivityTypeSelected,
    AssignSlot,
    LaunchMeeting,
    RemoveActivity,
    RequestEditActivity,
    RequestNewActivity,
    SubmitActivity,
)
from src.classplan.launcher import launch_url  # noqa: E402
from src.classplan.logging import bind_run_context, setup_logging  # noqa: E402
from src.classplan.models import ClassType, EditorField  # noqa: E402
from src.classplan.persistence import open_schedule  # noqa: E402
from src.classplan.state import ScheduleView  # noqa: E402

CELL_WIDTH = 16


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="View and edit the weekly class schedule.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--file",
        default=None,
        help="Schedule file (overrides CLASSPLAN_DATA_FILE).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print activities and the weekly grid.")
    show.add_argument("--json", action="store_true", help="Print the snapshot as JSON.")

    types = [t.value for t in ClassType]

    add = sub.add_parser("add", help="Create an activity.")
    add.add_argument("--name", required=True)
    add.add_argument("--url", default="")
    add.add_argument("--type", choices=types, default=None)

    edit = sub.add_parser("edit", help="Change an existing activity.")
    edit.add_argument("id", type=int)
    edit.add_argument("--name", default=None)
    edit.add_argument("--url", default=None)
    edit.add_argument("--type", choices=types, default=None)

    remove = sub.add_parser("remove", help="Delete an activity and free its slots.")
    remove.add_argument("id", type=int)

    assign = sub.add_parser("assign", help="Bind a slot to an activity (no id clears it).")
    assign.add_argument("day", type=int)
    assign.add_argument("slot", type=int)
    assign.add_argument("id", type=int, nargs="?", default=None)

    launch = sub.add_parser("open", help="Open the meeting link of a slot.")
    launch.add_argument("day", type=int)
    launch.add_argument("slot", type=int)

    return parser.parse_args(argv)


def _format_table(view: ScheduleView) -> str:
    """Render activities and the grid as plain text."""
    lines = ["Activities:"]
    if not view.activities:
        lines.append("  (none)")
    for activity in view.activities:
        lines.append(
            f"  [{activity.id}] {activity.name} ({activity.class_type.value}) {activity.url}"
        )

    lines.append("")
    header = "       " + "".join(row[0].day_name.ljust(CELL_WIDTH) for row in view.cells)
    lines.append(header)
    for slot in range(len(view.cells[0])):
        start = view.cells[0][slot].start
        cells = "".join(
            (row[slot].label or "-")[: CELL_WIDTH - 1].ljust(CELL_WIDTH) for row in view.cells
        )
        lines.append(f"{start}  {cells}")
    return "\n".join(lines)


def _fill_editor(dispatcher: Dispatcher, args: argparse.Namespace) -> None:
    if args.name is not None:
        dispatcher.handle(ActivityFieldChanged(field=EditorField.NAME, value=args.name))
    if args.url is not None:
        dispatcher.handle(ActivityFieldChanged(field=EditorField.URL, value=args.url))
    if args.type is not None:
        dispatcher.handle(ActivityTypeSelected(class_type=ClassType(args.type)))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    bind_run_context(args.command, args.file or config.data_file)

    launcher = functools.partial(launch_url, browser=config.browser or None)

    with open_schedule(args.file, config=config) as state:
        dispatcher = Dispatcher(state, launcher=launcher)

        if args.command == "show":
            view = state.snapshot()
            if args.json:
                print(json.dumps(view.model_dump(mode="json"), indent=2))
            else:
                print(_format_table(view))

        elif args.command == "add":
            dispatcher.handle(RequestNewActivity())
            _fill_editor(dispatcher, args)
            dispatcher.handle(SubmitActivity())
            print(state.catalog.list()[-1].id)

        elif args.command == "edit":
            if state.catalog.find(args.id) is None:
                raise SystemExit(f"ERROR: no activity with id {args.id}")
            dispatcher.handle(RequestEditActivity(activity_id=args.id))
            _fill_editor(dispatcher, args)
            dispatcher.handle(SubmitActivity())

        elif args.command == "remove":
            dispatcher.handle(RemoveActivity(activity_id=args.id))

        elif args.command == "assign":
            dispatcher.handle(AssignSlot(day=args.day, slot=args.slot, activity_id=args.id))

        elif args.command == "open":
            cell = state.snapshot().cell(args.day, args.slot)
            if cell.url is None:
                raise SystemExit("ERROR: slot is empty")
            dispatcher.handle(LaunchMeeting(url=cell.url))

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
