from taurus_ai.metrics import MetricsRecorder


def test_tool_outcomes_split_by_success():
    metrics = MetricsRecorder()
    metrics.record_tool("hedera_get_account_info", success=True)
    metrics.record_tool("hedera_get_account_info", success=True)
    metrics.record_tool("hedera_get_account_info", success=False)
    metrics.record_tool("hedera_create_topic", success=False)
    snapshot = metrics.snapshot()
    assert snapshot["tool_success"] == {"hedera_get_account_info": 2}
    assert snapshot["tool_error"] == {"hedera_get_account_info": 1, "hedera_create_topic": 1}


def test_recent_durations_are_bounded():
    metrics = MetricsRecorder(recent=3)
    for n in range(5):
        metrics.record_duration(f"req-{n}", float(n))
    assert list(metrics.snapshot()["recent_request_durations_ms"]) == ["req-2", "req-3", "req-4"]


def test_subscriber_gauge_and_reset():
    metrics = MetricsRecorder()
    metrics.subscriber_opened()
    metrics.subscriber_opened()
    metrics.subscriber_closed(dropped=True)
    metrics.subscriber_closed()
    metrics.subscriber_closed()
    metrics.record_prompt("success")
    snapshot = metrics.snapshot()
    assert snapshot["active_subscribers"] == 0
    assert snapshot["dropped_subscribers"] == 1
    assert snapshot["prompts"] == {"success": 1}
    metrics.reset()
    assert metrics.snapshot()["prompts"] == {}
