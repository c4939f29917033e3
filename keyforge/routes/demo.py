from __future__ import annotations

import time
from functools import wraps

from flask import Blueprint, g, jsonify, make_response, request
from flask_limiter.util import get_remote_address

from keyforge.services import RateLimiterUnavailable, identity_for
from keyforge.services.key_service import REASON_NOT_FOUND
from keyforge.tiers import DEFAULT_TIER


def _rate_limit_headers(result, now: float, denied: bool = False) -> dict:
    headers = {
        'X-RateLimit-Limit': str(result.limit),
        'X-RateLimit-Remaining': str(max(0, result.remaining)),
    }
    if denied:
        headers['Retry-After'] = str(result.retry_after(now))
    return headers


def create_demo_blueprint(*, key_verifier, key_service, quota_service, rate_limiter, logger):
    """Create the key-protected demo routes with injected dependencies."""
    blueprint = Blueprint('demo', __name__)

    def api_key_required(f):
        """Verify x-api-key, then spend one request from the caller's window.

        Callers presenting an unknown key are limited by address, so they
        never spend the budget of a key they do not hold. A missing header is
        refused without touching any window.
        """
        @wraps(f)
        def decorated_function(*args, **kwargs):
            presented = request.headers.get('x-api-key', '')
            if not presented:
                return jsonify({'error': REASON_NOT_FOUND}), 401
            try:
                verification = key_verifier.verify(presented)
                if verification.valid:
                    identity = identity_for(verification.key_id, None)
                    tier = quota_service.tier_for(verification.user_id)
                else:
                    identity = identity_for(None, get_remote_address())
                    tier = DEFAULT_TIER
                result = rate_limiter.limit(identity, tier)
            except RateLimiterUnavailable:
                return jsonify({'error': 'Rate limiter unavailable'}), 503
            except Exception as e:
                logger.error(f"API key check failed: {e}")
                return jsonify({'error': 'Internal server error'}), 500

            now = time.time()
            if not result.success:
                return jsonify({'error': 'Rate limit exceeded'}), 429, _rate_limit_headers(result, now, denied=True)
            if not verification.valid:
                return jsonify({'error': verification.reason}), 401

            g.api_key_id = verification.key_id
            response = make_response(f(*args, **kwargs))
            response.headers.update(_rate_limit_headers(result, now))
            return response

        return decorated_function

    @blueprint.route('/ping', methods=['GET'])
    @api_key_required
    def ping():
        return jsonify({'ok': True, 'message': 'Hello GET', 'keyId': g.api_key_id})

    @blueprint.route('/echo', methods=['GET'])
    @api_key_required
    def echo_get():
        return jsonify({
            'ok': True,
            'message': 'Hello GET',
            'query': request.args.to_dict(),
            'keyId': g.api_key_id,
        })

    @blueprint.route('/echo', methods=['POST'])
    @api_key_required
    def echo_post():
        """Return the records whose name matches ``postBody``."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({'error': 'Invalid JSON body'}), 400

        try:
            matches = key_service.find_by_name(str(body.get('postBody', '')))
        except Exception as e:
            logger.error(f"Echo lookup failed: {e}")
            return jsonify({'error': 'Internal server error'}), 500

        return jsonify({
            'ok': True,
            'message': 'Hello POST',
            'received': [{'id': record.id, 'name': record.name} for record in matches],
            'keyId': g.api_key_id,
        })

    return blueprint
