import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from clipforge.core import codec, pipeline
from clipforge.core.analysis import analyze_quality
from clipforge.core.config import ENGINE_CONFIG, FadeCurve
from clipforge.core.crossfade import crossfade
from clipforge.core.mixer import mix
from clipforge.utils.logger import logger


class AudioEngine:
    """
    Entry point for clip processing.
    Owns a worker pool sized to the machine and a bound on in-flight jobs,
    so callers get back-pressure instead of an unbounded queue.
    Use it as a context manager, or call close() when done.
    """

    def __init__(self, config=ENGINE_CONFIG):
        self.config = config
        self.max_workers = config.max_workers or os.cpu_count() or 1
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="clipforge"
        )
        self._slots = threading.BoundedSemaphore(config.max_pending)
        self._closed = False
        logger.info("AudioEngine initialized")

    # --- Synchronous API ---

    def process(self, buffer, requests, strict=False, cancel_token=None, progress=None):
        """Runs effect requests over a buffer and returns the PipelineResult."""
        return pipeline.run_pipeline(
            buffer, requests,
            strict=strict, cancel_token=cancel_token, progress=progress
        )

    def process_bytes(self, data, requests, strict=False, cancel_token=None, target_sample_rate=None):
        """Decodes container bytes, applies the requests and re-encodes the result."""
        buffer = codec.decode(data, target_sample_rate)
        result = self.process(buffer, requests, strict=strict, cancel_token=cancel_token)
        return codec.encode(result.buffer)

    def auto_enhance(self, buffer, **kwargs):
        """See pipeline.auto_enhance for the keyword options."""
        return pipeline.auto_enhance(buffer, **kwargs)

    def analyze(self, buffer, **kwargs):
        return analyze_quality(buffer, **kwargs)

    def mix(self, tracks):
        return mix(tracks)

    def crossfade(self, first, second, duration, curve=FadeCurve.LINEAR):
        return crossfade(first, second, duration, curve)

    # --- Pool ---

    def submit(self, buffer, requests, **kwargs) -> Future:
        """Queues process() on the pool; blocks while max_pending jobs are in flight."""
        return self._submit(self.process, buffer, requests, **kwargs)

    def submit_bytes(self, data, requests, **kwargs) -> Future:
        """Queues process_bytes() on the pool."""
        return self._submit(self.process_bytes, data, requests, **kwargs)

    def _submit(self, fn, *args, **kwargs):
        if self._closed:
            raise RuntimeError("AudioEngine is closed")

        timeout = self.config.submit_timeout
        if not self._slots.acquire(timeout=timeout):
            raise TimeoutError(f"No free worker slot within {timeout}s")

        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except Exception:
            self._slots.release()
            raise

        future.add_done_callback(lambda _: self._slots.release())
        return future

    def close(self, wait=True):
        """Shuts the worker pool down. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        logger.info("AudioEngine closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
