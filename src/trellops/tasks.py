"""Personal task view across every board the user can see."""

from dataclasses import dataclass, field
from datetime import datetime

from trellops.trello import TrelloClient, parse_timestamp

EXTERNAL_ORG_ID = "external_combined"
EXTERNAL_ORG_NAME = "External Workspaces"


@dataclass(frozen=True)
class CheckItem:
    id: str
    name: str
    state: str = "incomplete"
    due: datetime | None = None

    @property
    def complete(self) -> bool:
        return self.state == "complete"


@dataclass
class Task:
    """One card the user is a member of or has checklist items on."""

    card_id: str
    card_name: str
    url: str
    board_id: str
    board_name: str
    org_id: str
    org_name: str
    completed: bool = False
    due: datetime | None = None
    is_member: bool = False
    check_items: list[CheckItem] = field(default_factory=list)

    @property
    def external(self) -> bool:
        return self.org_id == EXTERNAL_ORG_ID

    def to_dict(self) -> dict:
        return {
            "card_id": self.card_id,
            "card_name": self.card_name,
            "url": self.url,
            "board_id": self.board_id,
            "board_name": self.board_name,
            "org_id": self.org_id,
            "org_name": self.org_name,
            "completed": self.completed,
            "due": self.due.isoformat() if self.due else None,
            "is_member": self.is_member,
            "check_items": [
                {"id": i.id, "name": i.name, "state": i.state, "due": i.due.isoformat() if i.due else None}
                for i in self.check_items
            ],
        }


@dataclass(frozen=True)
class TaskFilters:
    assigned: bool = True
    member: bool = True
    include_completed: bool = False
    org_ids: frozenset[str] = frozenset()
    board_ids: frozenset[str] = frozenset()
    sort_by: str = "board"


def _assigned_items(card: dict, member_id: str) -> list[CheckItem]:
    items = []
    for checklist in card.get("checklists") or []:
        for item in checklist.get("checkItems") or []:
            if item.get("idMember") == member_id or member_id in (item.get("idMembers") or []):
                items.append(
                    CheckItem(
                        id=str(item["id"]),
                        name=item.get("name") or "",
                        state=item.get("state") or "incomplete",
                        due=parse_timestamp(item.get("due")),
                    )
                )
    return items


def build_tasks(member_id: str, orgs: list[dict], boards: list[dict], cards: list[dict]) -> list[Task]:
    """Tasks from raw member data: cards the member is on or has checklist items assigned on.

    Boards outside any known workspace are grouped under one external workspace.
    """
    org_map = {org["id"]: org for org in orgs}
    board_map = {board["id"]: board for board in boards}

    tasks = []
    for card in cards:
        board = board_map.get(card.get("idBoard")) or {}
        org = org_map.get(board.get("idOrganization"))
        if org:
            org_id = org["id"]
            org_name = org.get("displayName") or org.get("name") or EXTERNAL_ORG_NAME
        else:
            org_id, org_name = EXTERNAL_ORG_ID, EXTERNAL_ORG_NAME

        items = _assigned_items(card, member_id)
        is_member = member_id in (card.get("idMembers") or [])
        if not is_member and not items:
            continue
        tasks.append(
            Task(
                card_id=str(card["id"]),
                card_name=card.get("name") or "",
                url=card.get("url") or card.get("shortUrl") or "",
                board_id=str(card.get("idBoard", "")),
                board_name=board.get("name") or "Unknown Board",
                org_id=org_id,
                org_name=org_name,
                completed=bool(card.get("dueComplete")),
                due=parse_timestamp(card.get("due")),
                is_member=is_member,
                check_items=items,
            )
        )
    return tasks


def _is_done(task: Task) -> bool:
    """Card complete and every assigned item complete (or none assigned)."""
    return task.completed and all(item.complete for item in task.check_items)


def _board_sort_key(task: Task):
    return (task.external, task.org_name.lower(), task.board_name.lower(), task.card_name.lower())


def filter_tasks(tasks: list[Task], filters: TaskFilters) -> list[Task]:
    """Apply assignment/membership, workspace, board and completion filters, then sort."""
    if not filters.assigned and not filters.member:
        return []

    result = []
    for task in tasks:
        wanted = (filters.assigned and bool(task.check_items)) or (filters.member and task.is_member)
        if not wanted:
            continue
        if filters.org_ids and task.org_id not in filters.org_ids:
            continue
        if filters.board_ids and task.board_id not in filters.board_ids:
            continue
        if not filters.include_completed and _is_done(task):
            continue
        result.append(task)

    if filters.sort_by == "due":
        dated = sorted((t for t in result if t.due), key=lambda t: t.due)
        return dated + [t for t in result if not t.due]
    return sorted(result, key=_board_sort_key)


def group_tasks(tasks: list[Task]) -> dict[str, dict[str, list[Task]]]:
    """Group sorted tasks as {org name: {board name: [tasks]}}, keeping order."""
    groups: dict[str, dict[str, list[Task]]] = {}
    for task in tasks:
        groups.setdefault(task.org_name, {}).setdefault(task.board_name, []).append(task)
    return groups


def fetch_tasks(client: TrelloClient) -> list[Task]:
    """Fetch and build the task list for the token's member."""
    member = client.me()
    return build_tasks(member["id"], client.my_organizations(), client.my_boards(), client.my_cards())
