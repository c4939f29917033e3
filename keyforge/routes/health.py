from __future__ import annotations

import logging
from typing import Callable

from flask import Blueprint, jsonify

logger = logging.getLogger(__name__)


def create_health_blueprint(db_factory: Callable[[], object], rate_limiter, version: str):
    """Create health and version routes with injected dependencies."""
    blueprint = Blueprint('health', __name__)

    @blueprint.route('/health')
    def health_check():
        """Health check endpoint for orchestration and monitoring."""
        health = {
            'status': 'healthy',
            'version': version,
            'checks': {},
        }

        # Check database connectivity
        try:
            conn = db_factory()
            cursor = conn.cursor()
            cursor.execute('SELECT 1')
            conn.close()
            health['checks']['database'] = {'status': 'ok'}
        except Exception as e:
            logger.error(f"Health check database failure: {e}")
            health['status'] = 'unhealthy'
            health['checks']['database'] = {'status': 'error', 'message': 'Database unreachable'}

        # Key-protected routes fail closed without the counter store
        if rate_limiter.check_storage():
            health['checks']['rate_limit_storage'] = {'status': 'ok'}
        else:
            health['status'] = 'unhealthy'
            health['checks']['rate_limit_storage'] = {'status': 'error', 'message': 'Storage unreachable'}

        status_code = 200 if health['status'] == 'healthy' else 503
        return jsonify(health), status_code

    @blueprint.route('/version')
    def get_version():
        """Get application version info."""
        import sys

        return jsonify({
            'version': version,
            'python_version': sys.version.split()[0],
        })

    return blueprint
