from core.notices import SEVERITY_ERROR, SEVERITY_SUCCESS, Notice, NoticeBoard


def test_drain_returns_unread_in_order_once():
    board = NoticeBoard()
    board.success("Member Added", "Dev has been added successfully.")
    board.error("Error", "Failed to save plan")

    first = board.drain()

    assert [n.title for n in first] == ["Member Added", "Error"]
    assert all(n.read for n in first)
    assert board.drain() == []


def test_drain_picks_up_notices_posted_after_the_last_drain():
    board = NoticeBoard()
    board.info("Checkout Cancelled")
    board.drain()
    board.success("Payment Successful")
    assert [n.title for n in board.drain()] == ["Payment Successful"]


def test_history_is_bounded():
    board = NoticeBoard(max_history=2)
    for title in ("one", "two", "three"):
        board.info(title)
    assert [n.title for n in board.drain()] == ["two", "three"]
    assert board.latest.title == "three"


def test_latest_on_an_empty_board():
    assert NoticeBoard().latest is None


def test_severity_helpers():
    board = NoticeBoard()
    assert board.error("Login Failed").is_error
    assert board.latest.severity == SEVERITY_ERROR
    assert not board.success("Saved").is_error
    assert board.latest.severity == SEVERITY_SUCCESS


def test_notice_defaults():
    notice = Notice("Reset Link Sent")
    assert notice.message == ""
    assert not notice.read
