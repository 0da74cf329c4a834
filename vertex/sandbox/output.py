from vertex.sandbox.errors import SandboxBusyError, SandboxTimeoutError, UnsafeSourceError

STUDENT_ROLE = 'student'
GENERIC_FAILURE_MESSAGE = 'Your code did not run successfully. Review your logic.'
NO_OUTPUT_MESSAGE = 'Execution finished with no output.'

# Shown verbatim to every role
_PUBLIC_ERRORS = (UnsafeSourceError, SandboxTimeoutError, SandboxBusyError)


def render_output(result, role):
    """Console text for a finished run. Students never see raw stderr."""
    out = (result.stdout or '').strip()
    err = (result.stderr or '').strip()
    if err and role == STUDENT_ROLE:
        return GENERIC_FAILURE_MESSAGE
    if err:
        return f"{out}\n{err}".strip()
    return out or NO_OUTPUT_MESSAGE


def render_error(error, role):
    """Console text for a run that failed before producing a result"""
    if isinstance(error, _PUBLIC_ERRORS):
        return str(error)
    if role == STUDENT_ROLE:
        return GENERIC_FAILURE_MESSAGE
    return str(error) or GENERIC_FAILURE_MESSAGE
