"""Static screening of Python sources before they reach the sandbox worker.

The denylist is a cheap fast path that turns away obviously hostile code
without paying for a worker round-trip. It matches whole words only and is
trivially bypassable (``getattr(__builtins__, 'ev' + 'al')``), so it is not
the isolation boundary: that is the separate worker process.
"""
import re
import logging

from vertex.sandbox.errors import UnsafeSourceError

logger = logging.getLogger(__name__)

DEFAULT_DENYLIST = (
    'os', 'sys', 'subprocess', 'socket', 'shutil', 'pathlib', 'requests', 'psutil',
    'urllib', 'http', 'ftplib', 'smtplib', 'telnetlib', 'webbrowser', 'importlib',
    '__import__', 'eval', 'exec', 'open', 'input', 'raw_input', 'file',
)


class DenylistValidator:
    def __init__(self, denylist=DEFAULT_DENYLIST, extra=()):
        names = []
        for name in list(denylist) + list(extra):
            if name and name not in names:
                names.append(name)
        self.names = tuple(names)
        self._pattern = re.compile(
            r'\b(' + '|'.join(re.escape(name) for name in self.names) + r')\b',
            re.IGNORECASE,
        )

    def find(self, source):
        """Return the first denylisted word in `source`, or None"""
        match = self._pattern.search(source or '')
        return match.group(1) if match else None

    def validate(self, source):
        match = self.find(source)
        if match is not None:
            logger.warning(f"🚫 Rejected Python source: denylisted name '{match}'")
            raise UnsafeSourceError(match=match)
