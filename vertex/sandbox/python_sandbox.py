import enum
import logging
import threading
from dataclasses import dataclass

from vertex.sandbox.errors import SandboxBusyError, SandboxCrashedError, SandboxTimeoutError
from vertex.sandbox.validator import DenylistValidator
from vertex.sandbox.worker import SandboxWorker

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 4.5
MAX_OUTPUT_SIZE = 1024 * 100


class WorkerState(str, enum.Enum):
    ABSENT = 'absent'
    READY = 'ready'
    BUSY = 'busy'


@dataclass
class SandboxResult:
    stdout: str = ''
    stderr: str = ''

    def to_dict(self):
        return {'stdout': self.stdout, 'stderr': self.stderr}


def _truncate(text, limit, label):
    if len(text) > limit:
        logger.warning(f"{label} truncated from {len(text)} to {limit} bytes")
        return text[:limit] + f"\n... [{label} truncated - exceeded {limit // 1024}KB limit]"
    return text


class PythonSandbox:
    """Runs untrusted Python in a lazily created worker process.

    The worker moves through ``absent -> ready -> busy -> ready``. A run that
    times out (or whose worker dies) discards the worker, so the state goes
    back to ``absent`` and the next run constructs a fresh one. Only one run
    may be in flight; a concurrent call is rejected with SandboxBusyError.
    """

    def __init__(self, validator=None, timeout=DEFAULT_TIMEOUT_SECONDS,
                 startup_timeout=15.0, max_output_size=MAX_OUTPUT_SIZE,
                 worker_factory=None):
        self.validator = validator or DenylistValidator()
        self.timeout = timeout
        self.startup_timeout = startup_timeout
        self.max_output_size = max_output_size
        self._worker_factory = worker_factory or (lambda: SandboxWorker(startup_timeout=self.startup_timeout))
        self._worker = None
        self._busy = False
        self._lock = threading.Lock()

    @property
    def state(self):
        if self._busy:
            return WorkerState.BUSY
        if self._worker is None:
            return WorkerState.ABSENT
        return WorkerState.READY

    def run(self, source):
        # Screening happens before any worker exists
        self.validator.validate(source)

        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected Python run: sandbox is busy")
            raise SandboxBusyError()
        self._busy = True
        try:
            worker = self._ensure_worker()
            try:
                payload = worker.execute(source, self.timeout)
            except (SandboxTimeoutError, SandboxCrashedError) as e:
                logger.warning(f"Discarding sandbox worker after {e.code}")
                self._discard_worker()
                raise
            return SandboxResult(
                stdout=_truncate(payload.get('stdout') or '', self.max_output_size, 'Output'),
                stderr=_truncate(payload.get('stderr') or '', self.max_output_size, 'Error output'),
            )
        finally:
            self._busy = False
            self._lock.release()

    def _ensure_worker(self):
        if self._worker is None:
            self._worker = self._worker_factory()
        return self._worker

    def _discard_worker(self):
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.terminate()

    def shutdown(self):
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.close()
