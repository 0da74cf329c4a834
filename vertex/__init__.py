import atexit
import logging
from flask import Flask, jsonify
from vertex.config import Config
from vertex.models.db import db
from vertex.celery_app import init_celery
from vertex.api import api

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    config_class.init_app(app)

    db.init_app(app)
    init_celery(app)

    with app.app_context():
        from vertex.models import project_model, execution_log_model
        db.create_all()

    from vertex.services.playground_service import PlaygroundRegistry
    registry = PlaygroundRegistry(app)
    app.extensions['vertex.playgrounds'] = registry
    atexit.register(registry.close_all)

    # Initialize API with Swagger
    api.init_app(app)

    # Register API namespaces
    from vertex.routes.project_api import ns as project_ns
    from vertex.routes.execution_api import ns as execution_ns
    api.add_namespace(project_ns, path='/projects')
    api.add_namespace(execution_ns, path='/executions')

    from vertex.routes import health_routes
    app.register_blueprint(health_routes.bp)

    @app.route("/")
    def home():
        return jsonify({
            "message": "Vertex Playground API is running!",
            "status": "success",
            "documentation": "/docs"
        })

    logger.info(f"✅ Vertex Playground ready (python runner: {app.config['PYTHON_RUNNER']})")
    return app
