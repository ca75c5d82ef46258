from app.speech.stream_guard import RecognitionRestartGuard


def test_results_reset_the_consecutive_restart_count():
    guard = RecognitionRestartGuard(max_restarts=2)

    assert guard.allow_restart() is True
    assert guard.allow_restart() is True
    guard.note_result()
    assert guard.consecutive_restarts == 0
    assert guard.allow_restart() is True
    assert guard.total_restarts == 3
    assert not hasattr(guard, "last_result_ts")


def test_guard_stops_once_budget_is_spent_or_recording_ends():
    guard = RecognitionRestartGuard(max_restarts=1)
    assert guard.allow_restart() is True
    assert guard.allow_restart() is False
    guard.note_result()
    assert guard.allow_restart() is False

    active = {"value": True}
    guard = RecognitionRestartGuard(max_restarts=5, should_restart=lambda: active["value"])
    active["value"] = False
    assert guard.allow_restart() is False


def test_out_of_order_events_are_ignored_until_ordering_resets():
    guard = RecognitionRestartGuard(max_restarts=1)
    assert guard.is_in_order(1.0) is True
    assert guard.is_in_order(0.5) is False
    guard.reset_ordering()
    assert guard.is_in_order(0.5) is True
