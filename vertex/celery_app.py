from celery import Celery

celery = Celery('vertex_playground')


def init_celery(app):
    """Initialize Celery with Flask app context"""
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_serializer='json',
        result_serializer='json',
        accept_content=['json'],
        timezone='UTC',
        enable_utc=True,
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
        imports=['vertex.tasks.sandbox_tasks'],
        sandbox_timeout=app.config['SANDBOX_TIMEOUT_SECONDS'],
        sandbox_startup_timeout=app.config['SANDBOX_STARTUP_TIMEOUT_SECONDS'],
        sandbox_extra_denylist=app.config['SANDBOX_EXTRA_DENYLIST'],
        sandbox_max_output_size=app.config['MAX_OUTPUT_SIZE'],
    )

    class ContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
