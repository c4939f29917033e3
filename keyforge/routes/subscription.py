from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from keyforge.tiers import parse_tier
from keyforge.utils.validators import validate_tier


def create_subscription_blueprint(*, quota_service, logger):
    """Create subscription routes with injected dependencies."""
    blueprint = Blueprint('subscription', __name__)

    @blueprint.route('/subscription', methods=['GET'])
    @login_required
    def get_subscription():
        try:
            return jsonify(quota_service.info(current_user.id))
        except Exception as e:
            logger.error(f"GET /subscription failed: {e}")
            return jsonify({'error': 'Failed to fetch subscription'}), 500

    @blueprint.route('/subscription', methods=['POST'])
    @login_required
    def update_subscription():
        """Change the caller's tier. No payment is involved."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        valid, error = validate_tier(data.get('tier'))
        if not valid:
            return jsonify({'error': error}), 400

        try:
            quota_service.set_tier(current_user.id, parse_tier(data['tier']))
            return jsonify(quota_service.info(current_user.id))
        except Exception as e:
            logger.error(f"POST /subscription failed: {e}")
            return jsonify({'error': 'Failed to update subscription'}), 500

    return blueprint
