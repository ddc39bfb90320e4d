import pytest

from api.app.domain import (
    ACTIVE_STATUSES,
    OrderStatus,
    can_transition,
    is_terminal,
    parse_status,
)

S = OrderStatus


@pytest.mark.parametrize(
    "src,dst",
    [
        (S.NEW, S.PREPARING),
        (S.PREPARING, S.READY),
        (S.READY, S.COMPLETED),
        (S.NEW, S.CANCELLED),
        (S.PREPARING, S.CANCELLED),
        (S.READY, S.CANCELLED),
    ],
)
def test_allowed_transitions(src, dst):
    assert can_transition(src, dst)


@pytest.mark.parametrize(
    "src,dst",
    [
        (S.NEW, S.COMPLETED),
        (S.NEW, S.READY),
        (S.READY, S.PREPARING),
        (S.PREPARING, S.NEW),
        (S.COMPLETED, S.CANCELLED),
        (S.CANCELLED, S.NEW),
        (S.NEW, S.NEW),
    ],
)
def test_rejected_transitions(src, dst):
    assert not can_transition(src, dst)


def test_terminal_statuses():
    assert is_terminal(S.COMPLETED)
    assert is_terminal(S.CANCELLED)
    assert not any(is_terminal(s) for s in ACTIVE_STATUSES)


def test_parse_status():
    assert parse_status("READY") is S.READY
    assert parse_status("ready") is None
    assert parse_status("DONE") is None
