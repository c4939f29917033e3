"""Caller identity supplied by the upstream identity provider.

Sign-in happens elsewhere; the gateway in front of this service forwards the
authenticated user's opaque id in a trusted header.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app, jsonify
from flask_login import UserMixin

from keyforge.extensions import login_manager

MAX_USER_ID_LENGTH = 256


class CurrentUser(UserMixin):
    def __init__(self, id: str):
        self.id = id


@login_manager.request_loader
def load_user_from_request(request) -> Optional[CurrentUser]:
    """Load the caller from the identity header, if present."""
    header = current_app.config.get('AUTH_USER_HEADER', 'X-User-Id')
    user_id = (request.headers.get(header) or '').strip()
    if not user_id or len(user_id) > MAX_USER_ID_LENGTH:
        return None
    return CurrentUser(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Unauthorized'}), 401
