"""Parent-side handle on the sandbox interpreter process.

The child is a fresh ``python -I`` running worker_main.py. Isolated mode
keeps the repository and user site-packages off its path, so nothing from
this application (Flask, the database, configuration) is loaded there.
"""
import json
import logging
import queue
import subprocess
import sys
import threading
from pathlib import Path

from vertex.sandbox.errors import SandboxCrashedError, SandboxStartupError, SandboxTimeoutError

logger = logging.getLogger(__name__)

WORKER_SCRIPT = Path(__file__).resolve().with_name('worker_main.py')


class SandboxWorker:
    """Handle on one interpreter process. Not reusable once terminated."""

    def __init__(self, startup_timeout=15.0, python_executable=None):
        self._process = subprocess.Popen(
            [python_executable or sys.executable, '-I', str(WORKER_SCRIPT)],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding='utf-8',
        )
        self._replies = queue.Queue()
        self._reader = threading.Thread(target=self._read_replies, name='vertex-sandbox-reader', daemon=True)
        self._reader.start()
        logger.info(f"🐍 Sandbox worker started (pid={self.pid})")

        try:
            reply = self._next_reply(startup_timeout)
        except SandboxTimeoutError:
            self.terminate()
            raise SandboxStartupError(f"Sandbox worker did not start within {startup_timeout}s")
        except SandboxCrashedError:
            self.terminate()
            raise SandboxStartupError()
        if reply.get('type') != 'ready':
            self.terminate()
            raise SandboxStartupError(f"Unexpected handshake from sandbox worker: {reply.get('type')}")

    @property
    def pid(self):
        return self._process.pid

    def _read_replies(self):
        try:
            for line in self._process.stdout:
                self._replies.put(line)
        except (OSError, ValueError):
            logger.debug(f"Reply pipe of sandbox worker {self.pid} closed")
        # EOF: the process exited or was killed
        self._replies.put(None)

    def _next_reply(self, timeout):
        try:
            line = self._replies.get(timeout=timeout)
        except queue.Empty:
            raise SandboxTimeoutError()
        if line is None:
            raise SandboxCrashedError()
        try:
            return json.loads(line)
        except ValueError:
            raise SandboxCrashedError("Malformed reply from sandbox worker")

    def _send(self, message):
        try:
            self._process.stdin.write(json.dumps(message) + '\n')
            self._process.stdin.flush()
        except (BrokenPipeError, OSError, ValueError):
            raise SandboxCrashedError()

    def execute(self, source, timeout):
        """Run `source` and return ``{"stdout", "stderr"}``.

        Raises SandboxTimeoutError when no reply arrives within `timeout`
        seconds and SandboxCrashedError when the process goes away. In both
        cases the caller must discard this worker.
        """
        self._send({'type': 'run', 'source': source})
        try:
            reply = self._next_reply(timeout)
        except SandboxTimeoutError:
            logger.warning(f"⏰ Sandbox worker {self.pid} exceeded {timeout}s")
            raise
        if reply.get('type') != 'result':
            raise SandboxCrashedError(f"Unexpected message from sandbox worker: {reply.get('type')}")
        return {'stdout': reply.get('stdout', ''), 'stderr': reply.get('stderr', '')}

    def terminate(self):
        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(1)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait(1)
        for stream in (self._process.stdin, self._process.stdout):
            try:
                stream.close()
            except (BrokenPipeError, OSError):
                logger.debug(f"Pipe of sandbox worker {self.pid} already closed")
        logger.info(f"🧹 Sandbox worker {self.pid} terminated")

    def close(self):
        """Ask the worker to exit cleanly, falling back to terminate"""
        try:
            self._send({'type': 'exit'})
        except SandboxCrashedError:
            logger.debug(f"Sandbox worker {self.pid} already gone")
        else:
            try:
                self._process.wait(1)
            except subprocess.TimeoutExpired:
                logger.debug(f"Sandbox worker {self.pid} ignored exit request")
        self.terminate()
