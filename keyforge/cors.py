"""CORS gate applied to every inbound request.

Requests without an ``Origin`` header pass through untouched. A listed
origin gets credentialed CORS headers; an unlisted one is refused with 403
instead of being served without headers. When no origins are configured the
gate grants nothing and refuses nothing.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from flask import Flask, Response, current_app, jsonify, request

logger = logging.getLogger(__name__)

ALLOW_METHODS = ('GET', 'POST', 'DELETE', 'OPTIONS')
ALLOW_HEADERS = ('Content-Type', 'X-Requested-With', 'x-api-key', 'Authorization')
EXPOSE_HEADERS = ('Retry-After', 'X-RateLimit-Limit', 'X-RateLimit-Remaining')
PREFLIGHT_MAX_AGE = 600


class CorsGate:
    """Origin allow-listing and preflight responses for a Flask app."""

    def __init__(self, allowed_origins: Iterable[str] = (), app: Optional[Flask] = None):
        self.allowed_origins = frozenset(allowed_origins)
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.extensions['cors_gate'] = self
        app.before_request(self._before_request)
        app.after_request(self._after_request)

    def decide(self, origin: Optional[str]) -> Optional[str]:
        """Origin to echo back, or None when it must not get CORS headers."""
        if not origin or not self.allowed_origins:
            return None
        return origin if origin in self.allowed_origins else None

    def is_rejected(self, origin: Optional[str]) -> bool:
        return bool(origin) and bool(self.allowed_origins) and self.decide(origin) is None

    def apply_headers(self, response: Response, origin: str) -> Response:
        response.headers['Access-Control-Allow-Origin'] = origin
        response.vary.add('Origin')
        response.headers['Access-Control-Allow-Credentials'] = 'true'
        response.headers['Access-Control-Expose-Headers'] = ', '.join(EXPOSE_HEADERS)
        return response

    def preflight_response(self) -> Response:
        response = current_app.response_class(status=204)
        response.headers['Access-Control-Allow-Methods'] = ', '.join(ALLOW_METHODS)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(ALLOW_HEADERS)
        response.headers['Access-Control-Max-Age'] = str(PREFLIGHT_MAX_AGE)
        return response

    def _before_request(self):
        origin = request.headers.get('Origin')
        if self.is_rejected(origin):
            logger.warning(f"Rejected request from disallowed origin {origin} to {request.path}")
            return jsonify({'error': 'Origin not allowed'}), 403
        if request.method == 'OPTIONS':
            return self.preflight_response()
        return None

    def _after_request(self, response: Response) -> Response:
        allowed = self.decide(request.headers.get('Origin'))
        if allowed:
            self.apply_headers(response, allowed)
        return response
