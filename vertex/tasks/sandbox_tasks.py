import logging
import threading
import time

from vertex.celery_app import celery
from vertex.sandbox.errors import SandboxError
from vertex.sandbox.python_sandbox import PythonSandbox
from vertex.sandbox.validator import DenylistValidator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# One sandbox per Celery worker process
_sandbox = None
_sandbox_lock = threading.Lock()


def get_sandbox():
    global _sandbox
    with _sandbox_lock:
        if _sandbox is None:
            conf = celery.conf
            _sandbox = PythonSandbox(
                validator=DenylistValidator(extra=conf.get('sandbox_extra_denylist') or ()),
                timeout=conf.get('sandbox_timeout', 4.5),
                startup_timeout=conf.get('sandbox_startup_timeout', 15.0),
                max_output_size=conf.get('sandbox_max_output_size', 1024 * 100),
            )
        return _sandbox


@celery.task(name='run_python_task', bind=True)
def run_python_task(self, source_code):
    logger.info(f"Task {self.request.id}: QUEUED → RUNNING")
    start_time = time.time()

    try:
        result = get_sandbox().run(source_code)
    except SandboxError as e:
        logger.warning(f"Task {self.request.id}: RUNNING → {e.code.upper()}")
        return {'status': e.code, 'error': str(e)}

    execution_time = int((time.time() - start_time) * 1000)
    logger.info(f"Task {self.request.id}: RUNNING → COMPLETED ({execution_time}ms)")
    return {
        'status': 'ok',
        'stdout': result.stdout,
        'stderr': result.stderr,
        'execution_time_ms': execution_time,
    }
