import redis
from flask import Blueprint, current_app, jsonify
from vertex.identity import get_registry

bp = Blueprint('health', __name__)


@bp.route('/health')
def health():
    return jsonify({"status": "healthy"})


@bp.route('/health/sandbox')
def check_sandbox():
    """Report how Python runs are executed"""
    config = current_app.config
    return jsonify({
        "status": "ok",
        "runner": config['PYTHON_RUNNER'],
        "timeout_seconds": config['SANDBOX_TIMEOUT_SECONDS'],
        "open_sessions": len(get_registry())
    }), 200


@bp.route('/health/redis')
def check_redis():
    """Check the Redis broker used by the Celery runner"""
    try:
        redis_client = redis.from_url(current_app.config['CELERY_BROKER_URL'])
        redis_client.ping()
        info = redis_client.info()

        return jsonify({
            "status": "connected",
            "redis_version": info.get('redis_version'),
            "connected_clients": info.get('connected_clients'),
            "used_memory_human": info.get('used_memory_human')
        }), 200

    except redis.ConnectionError as e:
        return jsonify({
            "status": "disconnected",
            "error": str(e),
            "message": "Cannot connect to Redis"
        }), 503
    except redis.RedisError as e:
        return jsonify({
            "status": "error",
            "error": str(e)
        }), 500


@bp.route('/health/celery')
def check_celery():
    """Check for Celery workers able to take sandbox runs"""
    from vertex.celery_app import celery

    try:
        inspect = celery.control.inspect(timeout=1.0)
        active_workers = inspect.active()
    except Exception as e:
        return jsonify({
            "status": "error",
            "error": str(e),
            "message": "Cannot connect to Celery"
        }), 500

    if not active_workers:
        return jsonify({
            "status": "no_workers",
            "message": "No Celery workers are running"
        }), 503

    return jsonify({
        "status": "running",
        "workers": list(active_workers.keys())
    }), 200
