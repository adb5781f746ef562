"""Tests for the trailing-edge debouncer."""

import threading

from areatiler.core.debounce import TrailingDebouncer


class TestTrailingDebouncer:
    """Tests for TrailingDebouncer."""

    def test_flush_runs_last_call(self):
        calls = []
        debounced = TrailingDebouncer(lambda *a, **k: calls.append((a, k)), delay=60)
        debounced(1)
        debounced(2, key="v")
        assert debounced.pending
        assert debounced.flush() is True
        assert calls == [((2,), {"key": "v"})]
        assert not debounced.pending
        assert debounced.flush() is False

    def test_cancel_drops_call(self):
        calls = []
        debounced = TrailingDebouncer(calls.append, delay=60)
        debounced("x")
        assert debounced.cancel() is True
        assert debounced.cancel() is False
        assert debounced.flush() is False
        assert calls == []

    def test_timer_fires_once(self):
        calls = []
        done = threading.Event()

        def record(value):
            calls.append(value)
            done.set()

        debounced = TrailingDebouncer(record, delay=0.2)
        for value in range(5):
            debounced(value)
        assert done.wait(5.0)
        assert calls == [4]
        assert not debounced.pending

    def test_default_delay(self):
        assert TrailingDebouncer(print).delay == 0.016

    def test_unthreaded_poll_runs_on_caller_thread(self):
        calls = []
        debounced = TrailingDebouncer(
            lambda value: calls.append((value, threading.get_ident())),
            delay=0,
            threaded=False,
        )
        assert debounced.poll() is False
        debounced("a")
        debounced("b")
        assert debounced.poll() is True
        assert calls == [("b", threading.get_ident())]
        assert debounced.poll() is False

    def test_unthreaded_poll_waits_for_window(self):
        calls = []
        debounced = TrailingDebouncer(calls.append, delay=60, threaded=False)
        debounced("x")
        assert debounced.poll() is False
        assert debounced.pending
        assert debounced.flush() is True
        assert calls == ["x"]
