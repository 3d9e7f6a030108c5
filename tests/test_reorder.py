import asyncio

import pytest

from src.fieldroute.services.planner.reorder import (
    ReorderController,
    ReorderState,
    move,
    pending_recalculation,
    server_updated,
    should_resync,
)


def test_should_resync_compares_id_sets_only():
    assert should_resync(["a", "b"], ["b", "a"]) is False
    assert should_resync(["a", "b"], ["a"]) is True
    assert should_resync(["a", "b"], ["a", "c"]) is True
    assert should_resync([], []) is False


def test_server_update_with_same_ids_keeps_the_draft():
    state = ReorderState(server_order=("a", "b", "c"), draft_order=("c", "a", "b"))

    updated = server_updated(state, ["b", "c", "a"])

    assert updated.server_order == ("b", "c", "a")
    assert updated.draft_order == ("c", "a", "b")


def test_server_update_with_new_ids_replaces_the_draft():
    state = ReorderState(server_order=("a", "b"), draft_order=("b", "a"))

    updated = server_updated(state, ["a", "b", "c"])

    assert updated.draft_order == ("a", "b", "c")


def test_move_reorders_draft_only():
    state = ReorderState(server_order=("a", "b", "c"), draft_order=("a", "b", "c"))

    moved = move(state, 0, 2)

    assert moved.draft_order == ("b", "c", "a")
    assert moved.server_order == ("a", "b", "c")
    with pytest.raises(IndexError):
        move(state, 3, 0)


def test_pending_recalculation():
    assert pending_recalculation(ReorderState(("a", "b"), ("a", "b"))) is None
    assert pending_recalculation(ReorderState(("a",), ("a",))) is None
    assert pending_recalculation(ReorderState(("a", "b"), ("b", "a"))) == ["b", "a"]


def test_controller_recalculates_only_when_drop_changes_order():
    calls = []

    async def recalculate(job_ids):
        calls.append(job_ids)

    controller = ReorderController(recalculate)
    controller.on_server_update(["a", "b", "c"])

    assert asyncio.run(controller.on_drop()) is False

    controller.on_drag(2, 0)
    assert controller.draft_order == ["c", "a", "b"]
    assert asyncio.run(controller.on_drop()) is True
    assert calls == [["c", "a", "b"]]

    # The metrics write-back returns the same ids in the new order.
    controller.on_server_update(["c", "a", "b"])
    assert controller.draft_order == ["c", "a", "b"]
    assert asyncio.run(controller.on_drop()) is False
    assert len(calls) == 1


def test_controller_ignores_single_stop_routes():
    calls = []

    async def recalculate(job_ids):
        calls.append(job_ids)

    controller = ReorderController(recalculate)
    controller.on_server_update(["a"])
    controller.on_drag(0, 0)

    assert asyncio.run(controller.on_drop()) is False
    assert calls == []
