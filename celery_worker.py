# celery -A celery_worker.celery worker --loglevel=info
from vertex import create_app
from vertex.celery_app import celery

# Create Flask app context
app = create_app()
app.app_context().push()

# Import tasks to register them with Celery
from vertex.tasks import sandbox_tasks
