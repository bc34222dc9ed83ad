import pytest

from emrbootstrap.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("remote_unreachable", url="http://127.0.0.1:1")

    assert "http://127.0.0.1:1" in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("not_a_code")
