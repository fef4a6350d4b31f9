"""Background render worker and last-request-wins delivery."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor

import numpy as np

from ascii_world import RenderOptions, RenderWorker, render_ascii, render_or_none


def _sprite(size: int = 8) -> bytes:
    rgba = np.full((size, size, 4), 255, dtype=np.uint8)
    rgba[2:size - 2, 2:size - 2, :3] = 40
    return rgba.tobytes()


def _resolved(value) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


class _Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, request_id, text):
        self.calls.append((request_id, text))


class TestRenderOrNone:
    def test_success_matches_render(self):
        assert render_or_none(_sprite(), 8, 8) == render_ascii(_sprite(), 8, 8)

    def test_failure_returns_none(self, caplog):
        assert render_or_none(b"short", 8, 8) is None
        assert "Render failed" in caplog.text


class TestRenderWorker:
    def test_delivers_results_in_order(self):
        recorder = _Recorder()
        with RenderWorker(recorder, executor=ThreadPoolExecutor(max_workers=1)) as worker:
            first = worker.submit(_sprite(), 8, 8)
            second = worker.submit(_sprite(), 8, 8, RenderOptions(glyph_set="braille"))
            first.future.result()
            second.future.result()

        assert first.request_id == 1
        assert second.request_id == 2
        latest_id, latest_text = worker.latest
        assert latest_id == 2
        assert latest_text == render_ascii(_sprite(), 8, 8, RenderOptions(glyph_set="braille"))
        assert recorder.calls[-1][0] == 2

    def test_stale_result_is_dropped(self):
        recorder = _Recorder()
        worker = RenderWorker(recorder, executor=ThreadPoolExecutor(max_workers=1))
        try:
            worker._deliver(2, _resolved("new"))
            worker._deliver(1, _resolved("old"))
        finally:
            worker.close()

        assert recorder.calls == [(2, "new")]
        assert worker.latest == (2, "new")

    def test_failed_render_delivers_none(self):
        recorder = _Recorder()
        with RenderWorker(recorder, executor=ThreadPoolExecutor(max_workers=1)) as worker:
            ticket = worker.submit(b"", 4, 4)
            assert ticket.future.result() is None
        assert worker.latest == (1, None)
        assert recorder.calls == [(1, None)]

    def test_latest_before_any_delivery(self):
        worker = RenderWorker(executor=ThreadPoolExecutor(max_workers=1))
        worker.close()
        assert worker.latest == (0, None)

    def test_default_process_pool(self):
        with RenderWorker() as worker:
            ticket = worker.submit(_sprite(), 8, 8)
            text = ticket.future.result(timeout=60)
        assert text == render_ascii(_sprite(), 8, 8)

    def test_process_pool_accepts_memoryview(self):
        view = memoryview(_sprite())
        with RenderWorker() as worker:
            text = worker.submit(view, 8, 8).future.result(timeout=60)
        assert text is not None
        assert text == render_ascii(view, 8, 8)
