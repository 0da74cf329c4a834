import logging

from vertex.sandbox.errors import SandboxError
from vertex.sandbox.output import render_error, render_output

logger = logging.getLogger(__name__)

OUTPUT_LIVE = 'live'
OUTPUT_CONSOLE = 'console'
OUTPUT_MODES = (OUTPUT_LIVE, OUTPUT_CONSOLE)

CHANNEL_CLIENT = 'client'
CHANNEL_SANDBOX = 'sandbox'


def _first_content(files, language):
    for file in files:
        if file.language == language:
            return file.content or ''
    return ''


def build_html_document(files):
    """Compose the first HTML, CSS and JS files into one srcdoc document"""
    html = _first_content(files, 'html')
    css = _first_content(files, 'css')
    js = _first_content(files, 'javascript')
    return f"<!doctype html><html><head><style>{css}</style></head><body>{html}<script>{js}</script></body></html>"


class ExecutionRouter:
    """Sends a Run to the iframe preview or to the Python sandbox.

    `preview_document` is what the browser assigns to the iframe's srcdoc;
    `console_text` is what the console panel shows. The output mode can be
    flipped at any time without re-running.
    """

    def __init__(self, store, context, python_runner, execution_log=None):
        self.store = store
        self.context = context
        self.python_runner = python_runner
        self.execution_log = execution_log
        self.output_mode = OUTPUT_LIVE
        self.preview_document = ''
        self.console_text = ''
        self.status_text = ''

    def set_output_mode(self, mode):
        if mode not in OUTPUT_MODES:
            raise ValueError(f"Unknown output mode: {mode}")
        self.output_mode = mode

    def run(self):
        file = self.store.active_file or (self.store.files[0] if self.store.files else None)
        if file is None:
            return None
        if file.language == 'python':
            return self._run_python(file)
        return self._run_preview()

    def _run_preview(self):
        self.set_output_mode(OUTPUT_LIVE)
        self.preview_document = build_html_document(self.store.files)
        self.status_text = 'Rendered HTML/CSS/JS in preview.'
        self._log(CHANNEL_CLIENT, 'html', 'ok')
        return self._report(CHANNEL_CLIENT, 'html', 'ok')

    def _run_python(self, file):
        self.status_text = 'Running Python securely...'
        self.set_output_mode(OUTPUT_CONSOLE)
        self.console_text = ''
        role = self.context.role

        try:
            result = self.python_runner.run(file.content)
        except SandboxError as e:
            logger.warning(f"Python run for {self.context.id} failed: {e.code}")
            return self._python_failed(render_error(e, role), error=e.code)
        except Exception as e:
            logger.exception(f"💥 Unexpected error running Python for {self.context.id}")
            return self._python_failed(render_error(e, role), error='error')

        status = 'error' if (result.stderr or '').strip() else 'ok'
        self.console_text = render_output(result, role)
        self.status_text = 'Python run completed.'
        self._log(CHANNEL_SANDBOX, 'python', status)
        return self._report(CHANNEL_SANDBOX, 'python', status)

    def _python_failed(self, text, error):
        self.console_text = text
        self.status_text = 'Python run failed.'
        self._log(CHANNEL_SANDBOX, 'python', 'error')
        return self._report(CHANNEL_SANDBOX, 'python', 'error', error=error)

    def _log(self, channel, language, status):
        if self.execution_log is not None:
            self.execution_log.append(channel, language, status, self.context.id)

    def _report(self, channel, language, status, error=None):
        report = {
            'channel': channel,
            'language': language,
            'status': status,
            'output_mode': self.output_mode,
            'console': self.console_text,
            'preview': self.preview_document,
            'execution_log': self.status_text,
        }
        if error is not None:
            report['error'] = error
        return report

    def describe(self):
        return {
            'output_mode': self.output_mode,
            'console': self.console_text,
            'preview': self.preview_document,
            'execution_log': self.status_text,
        }
