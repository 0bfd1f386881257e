"""Tests for the pure reorder/move engine."""

import pytest

from taskboard.domain import Column, ColumnWithTasks, Task, ValidationError
from taskboard.reorder import (
    DropTarget,
    Placement,
    clamp,
    is_strictly_ordered,
    move_between,
    move_within,
    renumber,
    reorder,
    resolve_drop,
)


def make_tasks(column_id, *ids):
    return [Task(title=i.upper(), column_id=column_id, sort_order=n, id=i) for n, i in enumerate(ids)]


def ids(items):
    return [item.id for item in items]


@pytest.fixture
def columns():
    a = ColumnWithTasks(
        column=Column(title="A", board_id="b", sort_order=0, owner_id="u", id="A"),
        tasks=make_tasks("A", "t1", "t2", "t3"),
    )
    b = ColumnWithTasks(
        column=Column(title="B", board_id="b", sort_order=1, owner_id="u", id="B"),
        tasks=make_tasks("B", "x1"),
    )
    empty = ColumnWithTasks(
        column=Column(title="C", board_id="b", sort_order=2, owner_id="u", id="C"),
    )
    return [a, b, empty]


# ---------------------------------------------------------------------------
# reorder
# ---------------------------------------------------------------------------


def test_reorder_first_to_last():
    tasks = make_tasks("A", "t1", "t2", "t3")
    assert ids(reorder(tasks, 0, 2)) == ["t2", "t3", "t1"]


def test_reorder_last_to_first():
    tasks = make_tasks("A", "t1", "t2", "t3")
    assert ids(reorder(tasks, 2, 0)) == ["t3", "t1", "t2"]


def test_reorder_same_index_is_noop():
    tasks = make_tasks("A", "t1", "t2", "t3")
    result = reorder(tasks, 1, 1)
    assert ids(result) == ["t1", "t2", "t3"]
    assert result is not tasks


def test_reorder_does_not_mutate_input():
    tasks = make_tasks("A", "t1", "t2", "t3")
    reorder(tasks, 0, 2)
    assert ids(tasks) == ["t1", "t2", "t3"]


@pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 3), (3, 0), (0, -1)])
def test_reorder_rejects_out_of_range(from_index, to_index):
    tasks = make_tasks("A", "t1", "t2", "t3")
    with pytest.raises(ValidationError, match="out of range"):
        reorder(tasks, from_index, to_index)


# ---------------------------------------------------------------------------
# moves
# ---------------------------------------------------------------------------


def test_clamp():
    assert clamp(None, 3) == 3
    assert clamp(-5, 3) == 0
    assert clamp(10, 3) == 3
    assert clamp(2, 3) == 2


def test_move_between_into_empty_column():
    source, target, final = move_between(make_tasks("A", "t1", "t2", "t3"), [], "t1", 0)
    assert ids(source) == ["t2", "t3"]
    assert ids(target) == ["t1"]
    assert final == 0


def test_move_between_appends_when_index_omitted():
    source, target, final = move_between(
        make_tasks("A", "t1", "t2"), make_tasks("B", "x1", "x2"), "t2"
    )
    assert ids(source) == ["t1"]
    assert ids(target) == ["x1", "x2", "t2"]
    assert final == 2


def test_move_between_clamps_index():
    _, target, final = move_between(
        make_tasks("A", "t1"), make_tasks("B", "x1"), "t1", 99
    )
    assert ids(target) == ["x1", "t1"]
    assert final == 1


def test_move_between_inserts_before_target_task():
    _, target, _ = move_between(
        make_tasks("A", "t1"), make_tasks("B", "x1", "x2", "x3"), "t1", 1
    )
    assert ids(target) == ["x1", "t1", "x2", "x3"]


def test_move_between_unknown_item():
    with pytest.raises(ValidationError):
        move_between(make_tasks("A", "t1"), [], "nope", 0)


def test_move_within_to_current_index_keeps_order():
    tasks = make_tasks("A", "t1", "t2", "t3")
    result, final = move_within(tasks, "t2", 1)
    assert ids(result) == ids(tasks)
    assert final == 1


def test_move_within_clamps_to_last_slot():
    result, final = move_within(make_tasks("A", "t1", "t2", "t3"), "t1", None)
    assert ids(result) == ["t2", "t3", "t1"]
    assert final == 2


def test_renumber_and_ordering_check():
    tasks = make_tasks("A", "t1", "t2", "t3")
    tasks[0].sort_order = 7
    assert not is_strictly_ordered(tasks)
    renumber(tasks, "B")
    assert [t.sort_order for t in tasks] == [0, 1, 2]
    assert {t.column_id for t in tasks} == {"B"}
    assert is_strictly_ordered(tasks)


def test_list_functions_leave_input_but_renumber_rewrites_it():
    tasks = make_tasks("A", "t1", "t2", "t3")
    moved = reorder(tasks, 0, 2)
    assert [t.id for t in tasks] == ["t1", "t2", "t3"]
    assert [t.id for t in moved] == ["t2", "t3", "t1"]
    assert [t.sort_order for t in tasks] == [0, 1, 2]

    renumber(moved)
    assert [t.sort_order for t in tasks] == [2, 0, 1]


# ---------------------------------------------------------------------------
# resolve_drop
# ---------------------------------------------------------------------------


def test_drop_on_other_column_appends(columns):
    assert resolve_drop(columns, "t1", DropTarget.column("B")) == Placement("B", 1)


def test_drop_on_empty_column(columns):
    assert resolve_drop(columns, "t1", DropTarget.column("C")) == Placement("C", 0)


def test_drop_on_own_column_area_goes_last(columns):
    assert resolve_drop(columns, "t1", DropTarget.column("A")) == Placement("A", 2)


def test_drop_on_task_takes_its_index(columns):
    assert resolve_drop(columns, "t1", DropTarget.task("t3")) == Placement("A", 2)
    assert resolve_drop(columns, "t1", DropTarget.task("x1")) == Placement("B", 0)


def test_drop_on_itself_resolves_to_current_position(columns):
    assert resolve_drop(columns, "t2", DropTarget.task("t2")) == Placement("A", 1)


def test_drop_outside_any_target(columns):
    assert resolve_drop(columns, "t1", None) is None


def test_drop_on_unknown_target(columns):
    assert resolve_drop(columns, "t1", DropTarget.task("ghost")) is None
    assert resolve_drop(columns, "t1", DropTarget.column("ghost")) is None
    assert resolve_drop(columns, "ghost", DropTarget.column("A")) is None
