"""Standalone sandbox interpreter, launched as ``python -I worker_main.py``.

Imports only the standard library. Requests and replies are JSON lines on
private copies of stdin/stdout; the real descriptors 0 and 1 point at
/dev/null so stray writes from user code cannot corrupt the channel.
"""
import contextlib
import io
import json
import os
import sys
import traceback

SOURCE_FILENAME = '<main.py>'


def execute(source):
    stdout = io.StringIO()
    stderr = io.StringIO()
    namespace = {'__name__': '__main__', '__builtins__': __builtins__}

    with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
        try:
            code = compile(source, SOURCE_FILENAME, 'exec')
            exec(code, namespace)
        except SystemExit as exc:
            if exc.code not in (None, 0):
                stderr.write(f"SystemExit: {exc.code}\n")
        except BaseException:
            etype, value, tb = sys.exc_info()
            # Drop this frame so the traceback starts at the user's module
            tb = tb.tb_next if tb is not None else None
            stderr.write(''.join(traceback.format_exception(etype, value, tb)))

    return {'stdout': stdout.getvalue(), 'stderr': stderr.getvalue()}


def _open_channel():
    requests = os.fdopen(os.dup(0), 'r', encoding='utf-8')
    replies = os.fdopen(os.dup(1), 'w', encoding='utf-8')
    devnull = os.open(os.devnull, os.O_RDWR)
    os.dup2(devnull, 0)
    os.dup2(devnull, 1)
    os.close(devnull)
    return requests, replies


def _reply(channel, message):
    channel.write(json.dumps(message) + '\n')
    channel.flush()


def main():
    requests, replies = _open_channel()
    _reply(replies, {'type': 'ready'})
    for line in requests:
        message = json.loads(line)
        if message.get('type') != 'run':
            break
        _reply(replies, {'type': 'result', **execute(message['source'])})


if __name__ == '__main__':
    main()
