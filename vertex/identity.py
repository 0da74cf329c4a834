from flask import current_app, request
from vertex.services.user_context import UserContext


def current_user_context():
    """User context supplied by the upstream identity provider's headers"""
    return UserContext.create(
        user_id=request.headers.get(current_app.config['USER_ID_HEADER']),
        role=request.headers.get(current_app.config['USER_ROLE_HEADER']),
    )


def get_registry():
    return current_app.extensions['vertex.playgrounds']
