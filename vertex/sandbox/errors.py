class SandboxError(Exception):
    """Base class for failures that stop a Python run before it yields a result"""
    code = 'error'
    default_message = 'Failed to run code'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class UnsafeSourceError(SandboxError):
    code = 'rejected'
    default_message = 'Unsafe import detected.'

    def __init__(self, message=None, match=None):
        super().__init__(message)
        self.match = match


class SandboxTimeoutError(SandboxError):
    code = 'timeout'
    default_message = 'Execution timed out'


class SandboxBusyError(SandboxError):
    code = 'busy'
    default_message = 'A Python run is already in progress.'


class SandboxCrashedError(SandboxError):
    code = 'crashed'
    default_message = 'The sandbox worker stopped unexpectedly.'


class SandboxStartupError(SandboxError):
    code = 'startup'
    default_message = 'The sandbox worker failed to start.'


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (SandboxError, UnsafeSourceError, SandboxTimeoutError,
                SandboxBusyError, SandboxCrashedError, SandboxStartupError)
}


def error_from_code(code, message=None):
    """Rebuild a sandbox error that crossed a process boundary as a status code"""
    return ERRORS_BY_CODE.get(code, SandboxError)(message)
