"""Unit tests for the non_reentrant guard."""

import asyncio

import pytest

from src.mp_common.errors import ReentrantCallError
from src.mp_settlement.engine.guard import _active_operation, non_reentrant


def test_marks_active_operation() -> None:
    assert _active_operation.get() is None
    with non_reentrant("buy_item"):
        assert _active_operation.get() == "buy_item"
    assert _active_operation.get() is None


def test_nested_entry_rejected() -> None:
    with non_reentrant("buy_item"), pytest.raises(ReentrantCallError) as exc_info:
        with non_reentrant("cancel_listing"):
            pass
    assert "cancel_listing" in exc_info.value.message
    assert exc_info.value.code == 3008


def test_flag_cleared_after_exception() -> None:
    with pytest.raises(RuntimeError), non_reentrant("list_item"):
        raise RuntimeError("boom")
    with non_reentrant("list_item"):
        pass


async def test_separate_tasks_do_not_block_each_other() -> None:
    entered = asyncio.Event()
    release = asyncio.Event()

    async def first() -> None:
        with non_reentrant("buy_item"):
            entered.set()
            await release.wait()

    async def second() -> str | None:
        await entered.wait()
        with non_reentrant("list_item"):
            op = _active_operation.get()
        release.set()
        return op

    _, op = await asyncio.gather(first(), second())
    assert op == "list_item"
