import logging

from celery.exceptions import TimeoutError as CeleryTimeoutError

from vertex.sandbox.errors import SandboxTimeoutError, error_from_code
from vertex.sandbox.python_sandbox import SandboxResult

logger = logging.getLogger(__name__)


class CeleryPythonRunner:
    """Python runner that executes inside a Celery worker's sandbox.

    Exposes the same `run(source)` contract as PythonSandbox: it returns a
    SandboxResult or raises the matching SandboxError.
    """

    def __init__(self, task, timeout):
        self.task = task
        # broker round-trip on top of the sandbox budget
        self.timeout = timeout

    def run(self, source):
        async_result = self.task.apply_async(args=[source])
        logger.info(f"📤 Python run sent to Celery as task {async_result.id}")
        try:
            payload = async_result.get(timeout=self.timeout)
        except CeleryTimeoutError:
            logger.warning(f"⏰ No reply from Celery task {async_result.id} within {self.timeout}s")
            raise SandboxTimeoutError()

        if payload.get('status') != 'ok':
            raise error_from_code(payload.get('status'), payload.get('error'))
        return SandboxResult(stdout=payload.get('stdout') or '', stderr=payload.get('stderr') or '')

    def shutdown(self):
        return None
