"""Tests for the after()/after_cancel() event loop."""

import threading

from chatcut.core.scheduler import LoopScheduler


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_callbacks_run_when_due():
    clock = FakeClock()
    scheduler = LoopScheduler(clock=clock)
    calls = []
    scheduler.after(100, calls.append, "late")
    scheduler.after(0, calls.append, "now")

    assert scheduler.run_pending() == 1
    assert calls == ["now"]
    clock.now = 0.099
    assert scheduler.run_pending() == 0
    clock.now = 0.1
    assert scheduler.run_pending() == 1
    assert calls == ["now", "late"]
    assert scheduler.pending == 0


def test_cancel():
    clock = FakeClock()
    scheduler = LoopScheduler(clock=clock)
    calls = []
    token = scheduler.after(10, calls.append, 1)
    scheduler.after_cancel(token)
    scheduler.after_cancel(token)
    scheduler.after_cancel("after#999")
    scheduler.after_cancel(None)
    clock.now = 1.0
    assert scheduler.run_pending() == 0
    assert calls == []


def test_zero_delay_callbacks_queued_while_draining_run_in_same_pass():
    scheduler = LoopScheduler(clock=FakeClock())
    calls = []

    def first():
        calls.append("first")
        scheduler.after(0, calls.append, "second")

    scheduler.after(0, first)
    assert scheduler.run_pending() == 2
    assert calls == ["first", "second"]


def test_same_due_time_runs_in_order():
    scheduler = LoopScheduler(clock=FakeClock())
    calls = []
    for i in range(5):
        scheduler.after(0, calls.append, i)
    scheduler.run_pending()
    assert calls == [0, 1, 2, 3, 4]


def test_worker_thread_hands_result_to_loop_thread():
    scheduler = LoopScheduler()
    seen = []

    def worker():
        scheduler.after(0, lambda: seen.append(threading.current_thread()))

    thread = threading.Thread(target=worker)
    thread.start()
    scheduler.run(duration=5.0, until=lambda: bool(seen))
    thread.join()
    assert seen == [threading.current_thread()]


def test_run_returns_when_queue_is_empty():
    scheduler = LoopScheduler()
    calls = []
    scheduler.after(1, calls.append, "x")
    scheduler.run()
    assert calls == ["x"]
