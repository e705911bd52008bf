"""Tests for the cross-board task view (trellops.tasks)."""

from datetime import datetime, timezone

from trellops.tasks import EXTERNAL_ORG_ID, TaskFilters, build_tasks, fetch_tasks, filter_tasks, group_tasks

ME = "m1"
ORGS = [{"id": "o1", "displayName": "Acme"}, {"id": "o2", "name": "beta"}]
BOARDS = [
    {"id": "b1", "name": "Jobs", "idOrganization": "o1"},
    {"id": "b2", "name": "Admin", "idOrganization": "o2"},
    {"id": "b3", "name": "Shared", "idOrganization": "elsewhere"},
]


def _make_card(id, board="b1", members=(ME,), items=(), **kwargs):
    card = {"id": id, "name": f"card {id}", "idBoard": board, "idMembers": list(members), "url": f"https://t/{id}"}
    if items:
        card["checklists"] = [{"checkItems": list(items)}]
    card.update(kwargs)
    return card


def test_build_tasks_member_and_assigned():
    cards = [
        _make_card("member"),
        _make_card("assigned", members=(), items=[{"id": "i1", "name": "do it", "idMember": ME}]),
        _make_card("other", members=("m2",), items=[{"id": "i2", "name": "not mine", "idMember": "m2"}]),
    ]
    tasks = build_tasks(ME, ORGS, BOARDS, cards)
    assert [t.card_id for t in tasks] == ["member", "assigned"]
    assert tasks[0].is_member and not tasks[0].check_items
    assert not tasks[1].is_member
    assert tasks[1].check_items[0].name == "do it"


def test_external_boards_grouped():
    tasks = build_tasks(ME, ORGS, BOARDS, [_make_card("x", board="b3"), _make_card("y", board="unknown")])
    assert all(t.org_id == EXTERNAL_ORG_ID for t in tasks)
    assert tasks[1].board_name == "Unknown Board"


def test_filter_membership_toggles():
    tasks = build_tasks(
        ME,
        ORGS,
        BOARDS,
        [_make_card("member"), _make_card("assigned", members=(), items=[{"id": "i", "idMember": ME}])],
    )
    assert [t.card_id for t in filter_tasks(tasks, TaskFilters(member=False))] == ["assigned"]
    assert [t.card_id for t in filter_tasks(tasks, TaskFilters(assigned=False))] == ["member"]
    assert filter_tasks(tasks, TaskFilters(assigned=False, member=False)) == []


def test_filter_completed():
    cards = [
        _make_card("done", dueComplete=True),
        _make_card("half", dueComplete=True, items=[{"id": "i", "idMember": ME, "state": "incomplete"}]),
        _make_card("open"),
    ]
    tasks = build_tasks(ME, ORGS, BOARDS, cards)
    assert [t.card_id for t in filter_tasks(tasks, TaskFilters())] == ["half", "open"]
    assert len(filter_tasks(tasks, TaskFilters(include_completed=True))) == 3


def test_filter_workspace_and_board():
    tasks = build_tasks(ME, ORGS, BOARDS, [_make_card("a", "b1"), _make_card("b", "b2"), _make_card("c", "b3")])
    assert [t.card_id for t in filter_tasks(tasks, TaskFilters(org_ids=frozenset({"o2"})))] == ["b"]
    assert [t.card_id for t in filter_tasks(tasks, TaskFilters(board_ids=frozenset({"b3"})))] == ["c"]


def test_sort_by_board_puts_external_last():
    tasks = build_tasks(ME, ORGS, BOARDS, [_make_card("ext", "b3"), _make_card("b", "b2"), _make_card("a", "b1")])
    assert [t.card_id for t in filter_tasks(tasks, TaskFilters())] == ["a", "b", "ext"]


def test_sort_by_due_puts_undated_last():
    cards = [
        _make_card("none"),
        _make_card("late", due="2024-06-01T00:00:00.000Z"),
        _make_card("soon", due="2024-05-20T00:00:00.000Z"),
    ]
    tasks = build_tasks(ME, ORGS, BOARDS, cards)
    result = filter_tasks(tasks, TaskFilters(sort_by="due"))
    assert [t.card_id for t in result] == ["soon", "late", "none"]
    assert result[0].due == datetime(2024, 5, 20, tzinfo=timezone.utc)


def test_group_tasks_keeps_order():
    tasks = filter_tasks(build_tasks(ME, ORGS, BOARDS, [_make_card("a", "b1"), _make_card("b", "b2")]), TaskFilters())
    groups = group_tasks(tasks)
    assert list(groups) == ["Acme", "beta"]
    assert [t.card_id for t in groups["Acme"]["Jobs"]] == ["a"]


def test_fetch_tasks_uses_member_endpoints():
    class Client:
        def me(self):
            return {"id": ME}

        def my_organizations(self):
            return ORGS

        def my_boards(self):
            return BOARDS

        def my_cards(self):
            return [_make_card("a")]

    tasks = fetch_tasks(Client())
    assert tasks[0].to_dict()["board_name"] == "Jobs"
