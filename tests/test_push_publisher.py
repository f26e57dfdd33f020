"""Tests for push-publish reconciliation."""

import logging
from unittest.mock import Mock

import pytest

from ome_push_relay.exceptions import UpstreamError
from ome_push_relay.push_publisher import PushAction, PushPublisher

TARGET = "rtmp://target.example/live/secretkey"
OTHER_TARGET = "rtmp://other.example/app/otherkey"


def running_push(stream_name, url, stream_key):
    """Build a push item as returned by OME."""
    return {
        "id": f"push_{stream_name}",
        "stream": {"name": stream_name},
        "url": url,
        "streamKey": stream_key,
    }


@pytest.fixture
def mock_client():
    """Create a mock OME client with no running pushes."""
    client = Mock()
    client.list_pushes.return_value = []
    return client


@pytest.fixture
def publisher(mock_client):
    """Create a publisher that does not actually sleep."""
    return PushPublisher(mock_client, settle_delay=5, sleep=Mock())


def test_job_id_is_derived_from_stream_name():
    """Test that push job ids are deterministic."""
    assert PushPublisher.job_id("stream") == "push_stream"


def test_current_target_found(publisher, mock_client):
    """Test that the running push target is rebuilt from url and streamKey."""
    mock_client.list_pushes.return_value = [
        running_push("other", "rtmp://x/y", "z"),
        running_push("s", "rtmp://target.example/live", "secretkey"),
    ]

    assert publisher.current_target("s") == TARGET


def test_current_target_absent(publisher, mock_client):
    """Test that a stream without a push has no current target."""
    mock_client.list_pushes.return_value = [running_push("other", "rtmp://x/y", "z")]

    assert publisher.current_target("s") is None


def test_current_target_list_failure_is_none(publisher, mock_client):
    """Test that a failure to list pushes is treated as no current target."""
    mock_client.list_pushes.side_effect = UpstreamError("rtmprelay:pushes", 500, "Internal")

    assert publisher.current_target("s") is None


def test_update_starts_when_not_running(publisher, mock_client):
    """Test that a missing push is started exactly once."""
    action = publisher.update("s", TARGET)

    assert action == PushAction.START
    mock_client.stop_push.assert_not_called()
    mock_client.start_push.assert_called_once_with(
        {
            "id": "push_s",
            "stream": {"name": "s"},
            "protocol": "rtmp",
            "url": "rtmp://target.example/live",
            "streamKey": "secretkey",
        }
    )


def test_update_noop_when_target_unchanged(publisher, mock_client):
    """Test that an identical running target causes no calls."""
    mock_client.list_pushes.return_value = [
        running_push("s", "rtmp://target.example/live", "secretkey")
    ]

    action = publisher.update("s", TARGET)

    assert action == PushAction.NOOP
    mock_client.start_push.assert_not_called()
    mock_client.stop_push.assert_not_called()


def test_update_switches_target():
    """Test that a changed target is stopped, settled, then started."""
    calls = []
    client = Mock()
    client.list_pushes.return_value = [
        running_push("s", "rtmp://other.example/app", "otherkey")
    ]
    client.stop_push.side_effect = lambda push_id: calls.append(("stop", push_id))
    client.start_push.side_effect = lambda body: calls.append(("start", body["url"], body["streamKey"]))
    publisher = PushPublisher(client, settle_delay=5, sleep=lambda s: calls.append(("sleep", s)))

    action = publisher.update("s", TARGET)

    assert action == PushAction.SWITCH
    assert calls == [
        ("stop", "push_s"),
        ("sleep", 5),
        ("start", "rtmp://target.example/live", "secretkey"),
    ]


def test_update_stops_when_no_target(publisher, mock_client):
    """Test that clearing the target stops a running push."""
    mock_client.list_pushes.return_value = [running_push("s", "rtmp://x/live", "key")]

    action = publisher.update("s", None)

    assert action == PushAction.STOP
    mock_client.stop_push.assert_called_once_with("push_s")
    mock_client.start_push.assert_not_called()


def test_update_noop_when_no_target_and_not_running(publisher, mock_client):
    """Test that nothing happens without a target or a running push."""
    action = publisher.update("s", None)

    assert action == PushAction.NOOP
    mock_client.start_push.assert_not_called()
    mock_client.stop_push.assert_not_called()


def test_update_starts_when_listing_fails(publisher, mock_client):
    """Test that a listing failure fails open to a start attempt."""
    mock_client.list_pushes.side_effect = UpstreamError("rtmprelay:pushes", message="timeout")

    action = publisher.update("s", TARGET)

    assert action == PushAction.START
    mock_client.start_push.assert_called_once()


def test_start_keeps_query_in_stream_key(publisher, mock_client):
    """Test that the target's query string is sent as part of the stream key."""
    assert publisher.start("s", "rtmp://host:1936/live/key?token=abc") is True

    body = mock_client.start_push.call_args.args[0]
    assert body["url"] == "rtmp://host:1936/live"
    assert body["streamKey"] == "key?token=abc"


def test_start_rejects_invalid_target(publisher, mock_client):
    """Test that an invalid target aborts before any call."""
    assert publisher.start("s", "rtmp://host/live") is False

    mock_client.start_push.assert_not_called()


def test_start_failure_is_swallowed(publisher, mock_client):
    """Test that a failed start is reported but not raised."""
    mock_client.start_push.side_effect = UpstreamError("rtmprelay:startPush", 409, "Conflict")

    assert publisher.start("s", TARGET) is False


def test_stop_failure_is_swallowed(publisher, mock_client):
    """Test that stopping an absent push is not an error for the caller."""
    mock_client.stop_push.side_effect = UpstreamError("rtmprelay:stopPush", 404, "Not Found")

    assert publisher.stop("s") is False
    mock_client.stop_push.assert_called_once_with("push_s")


def test_logs_never_contain_stream_key(publisher, mock_client, caplog):
    """Test that the target stream key is masked in every log line of a switch and stop."""
    stream = "rtmp%3A%2F%2Ftarget.example%2Flive%2Fsupersecretkey123"
    mock_client.list_pushes.return_value = [
        running_push(stream, "rtmp://other.example/app", "otherkey-456789"),
    ]
    mock_client.start_push.return_value = {"statusCode": 200, "message": "OK"}
    mock_client.stop_push.return_value = {"statusCode": 200, "message": "OK"}

    with caplog.at_level(logging.DEBUG):
        action = publisher.update(stream, "rtmp://target.example/live/supersecretkey123")
        publisher.stop(stream)

    assert action == PushAction.SWITCH
    assert caplog.records
    assert "supersecretkey123" not in caplog.text
    assert "otherkey-456789" not in caplog.text
