"""Handler for 'trellops tasks' command."""

from trellops.cli._common import error, load_context, output_json
from trellops.tasks import TaskFilters, fetch_tasks, filter_tasks, group_tasks
from trellops.trello import TrelloError


def tasks(args) -> int:
    """Show the user's cards and assigned checklist items across boards."""
    ctx = load_context(args, need_board=False)
    try:
        all_tasks = fetch_tasks(ctx.client())
    except TrelloError as e:
        error(str(e), args.json)

    filters = TaskFilters(
        assigned=not args.no_assigned,
        member=not args.no_member,
        include_completed=args.done,
        org_ids=frozenset(args.workspace or ()),
        board_ids=frozenset(args.board_filter or ()),
        sort_by=args.sort,
    )
    shown = filter_tasks(all_tasks, filters)

    if args.json:
        output_json([t.to_dict() for t in shown])
        return 0

    if not shown:
        print("No tasks found matching filters.")
        return 0

    if args.sort == "due":
        for t in shown:
            due = t.due.strftime("%Y-%m-%d") if t.due else "-"
            print(f"{due:<10}  {t.card_name}  [{t.board_name}]")
        return 0

    for org_name, boards in group_tasks(shown).items():
        print(org_name)
        for board_name, board_tasks in boards.items():
            print(f"  {board_name}")
            for t in board_tasks:
                done = "x" if t.completed else " "
                print(f"    [{done}] {t.card_name}")
                for item in t.check_items:
                    mark = "x" if item.complete else " "
                    print(f"        [{mark}] {item.name}")
    return 0
