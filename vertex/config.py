import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Get the base directory (repository root)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / '.env'

load_dotenv(ENV_FILE, override=True)

logger = logging.getLogger(__name__)


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Fix for Render: postgres:// -> postgresql://
    database_url = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'vertex.db'}")
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = database_url
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Celery Configuration
    CELERY_BROKER_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_TASK_ALWAYS_EAGER = False

    # Playground
    DEFAULT_PROJECT_NAME = os.getenv('DEFAULT_PROJECT_NAME', 'My Vertex Project')
    AUTOSAVE_DEBOUNCE_SECONDS = float(os.getenv('AUTOSAVE_DEBOUNCE_SECONDS', '1.2'))
    EXECUTION_LOG_LIMIT = int(os.getenv('EXECUTION_LOG_LIMIT', '50'))
    MAX_OPEN_PLAYGROUNDS = int(os.getenv('MAX_OPEN_PLAYGROUNDS', '100'))

    # Sandbox
    PYTHON_RUNNER = os.getenv('PYTHON_RUNNER', 'inline').lower()  # inline | celery
    SANDBOX_TIMEOUT_SECONDS = float(os.getenv('SANDBOX_TIMEOUT_SECONDS', '4.5'))
    SANDBOX_STARTUP_TIMEOUT_SECONDS = float(os.getenv('SANDBOX_STARTUP_TIMEOUT_SECONDS', '15'))
    SANDBOX_EXTRA_DENYLIST = [
        name.strip() for name in os.getenv('SANDBOX_EXTRA_DENYLIST', '').split(',') if name.strip()
    ]
    MAX_OUTPUT_SIZE = int(os.getenv('MAX_OUTPUT_SIZE', str(1024 * 100)))

    # Identity headers set by the upstream auth proxy
    USER_ID_HEADER = os.getenv('USER_ID_HEADER', 'X-Vertex-User')
    USER_ROLE_HEADER = os.getenv('USER_ROLE_HEADER', 'X-Vertex-Role')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'

    @staticmethod
    def init_app(app):
        logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))
        logger.info(f"Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
