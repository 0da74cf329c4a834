from vertex.sandbox.errors import (
    SandboxBusyError,
    SandboxCrashedError,
    SandboxTimeoutError,
    UnsafeSourceError,
    error_from_code,
)
from vertex.sandbox.output import (
    GENERIC_FAILURE_MESSAGE,
    NO_OUTPUT_MESSAGE,
    render_error,
    render_output,
)
from vertex.sandbox.python_sandbox import SandboxResult

TRACEBACK = (
    "Traceback (most recent call last):\n"
    '  File "main.py", line 1, in <module>\n'
    "ZeroDivisionError: division by zero\n"
)


def test_student_with_stderr_sees_only_the_generic_message():
    result = SandboxResult(stdout="partial\n", stderr=TRACEBACK)

    text = render_output(result, "student")

    assert text == GENERIC_FAILURE_MESSAGE
    assert "ZeroDivisionError" not in text


def test_staff_and_admin_see_stdout_then_stderr():
    result = SandboxResult(stdout="partial\n", stderr=TRACEBACK)

    for role in ("staff", "admin"):
        text = render_output(result, role)
        assert text.startswith("partial\nTraceback")
        assert "ZeroDivisionError: division by zero" in text


def test_clean_run_shows_trimmed_stdout():
    assert render_output(SandboxResult(stdout="hi\n"), "student") == "hi"


def test_empty_run_shows_placeholder():
    assert render_output(SandboxResult(stdout="  \n"), "staff") == NO_OUTPUT_MESSAGE


def test_whitespace_only_stderr_is_not_an_error():
    assert render_output(SandboxResult(stdout="ok", stderr="\n"), "student") == "ok"


def test_public_errors_are_shown_to_students():
    assert render_error(UnsafeSourceError(), "student") == "Unsafe import detected."
    assert render_error(SandboxTimeoutError(), "student") == "Execution timed out"
    assert render_error(SandboxBusyError(), "student") == "A Python run is already in progress."


def test_other_errors_are_generic_for_students_only():
    error = SandboxCrashedError()

    assert render_error(error, "student") == GENERIC_FAILURE_MESSAGE
    assert render_error(error, "admin") == "The sandbox worker stopped unexpectedly."
    assert render_error(RuntimeError("boom"), "staff") == "boom"


def test_error_codes_round_trip_to_classes():
    error = error_from_code("timeout")
    assert isinstance(error, SandboxTimeoutError)

    error = error_from_code("rejected", "Unsafe import detected.")
    assert isinstance(error, UnsafeSourceError)

    assert type(error_from_code("something-new", "x")).__name__ == "SandboxError"
