from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from keyforge.tiers import get_tier_name
from keyforge.utils.validators import validate_key_payload, validate_uuid


def create_keys_blueprint(*, key_service, quota_service, logger):
    """Create API key management routes with injected dependencies."""
    blueprint = Blueprint('keys', __name__)

    def serialize(record):
        return {
            'id': record.id,
            'name': record.name,
            'period': record.period,
            'origin': record.origin,
            'value': record.value,
            'imageUrl': record.image_url,
            'masked': key_service.mask(record),
            'createdAt': record.created_at,
            'revoked': record.revoked,
        }

    @blueprint.route('/keys', methods=['POST'])
    @login_required
    def create_key():
        """Create a new artifact record and its API key."""
        data = request.get_json(silent=True)
        valid, error = validate_key_payload(data)
        if not valid:
            return jsonify({'error': error}), 400

        try:
            quota = quota_service.check(current_user.id)
            if not quota.allowed:
                return jsonify({
                    'error': f"Daily limit reached ({quota.limit} keys per day for {get_tier_name(quota.tier)} tier)",
                    'current': quota.current,
                    'limit': quota.limit,
                    'tier': quota.tier.value,
                }), 429

            record, plaintext = key_service.issue(
                name=data['name'],
                period=data['period'],
                origin=data['origin'],
                value=data['value'],
                image_url=data.get('imageUrl'),
                user_id=current_user.id,
            )
            try:
                quota_service.increment(current_user.id)
            except Exception:
                # An uncharged key must not stay usable
                key_service.revoke(record.id)
                raise
        except Exception as e:
            logger.error(f"Failed to create API key: {e}")
            return jsonify({'error': 'Failed to create key'}), 500

        return jsonify({
            'id': record.id,
            'key': plaintext,
            'last4': record.last4,
            'name': record.name,
            'period': record.period,
            'origin': record.origin,
            'value': record.value,
            'imageUrl': record.image_url,
            'createdAt': record.created_at,
            'message': 'Save this key now - it will not be shown again!',
        }), 201

    @blueprint.route('/keys', methods=['GET'])
    @login_required
    def list_keys():
        """List all keys, or fetch one with ?keyId=."""
        key_id = request.args.get('keyId')
        try:
            if key_id:
                record = key_service.get_key(key_id)
                if record is None:
                    return jsonify({'error': 'Key not found'}), 404
                return jsonify(serialize(record))
            return jsonify({'items': [serialize(record) for record in key_service.list_keys()]})
        except Exception as e:
            logger.error(f"Failed to list API keys: {e}")
            return jsonify({'error': 'Failed to list keys'}), 500

    @blueprint.route('/keys', methods=['DELETE'])
    @login_required
    def revoke_key():
        """Revoke a key. Revoking twice still succeeds."""
        key_id = request.args.get('keyId')
        valid, error = validate_uuid(key_id)
        if not valid:
            return jsonify({'error': error}), 400

        try:
            if not key_service.revoke(key_id):
                return jsonify({'error': 'Key not found'}), 404
        except Exception as e:
            logger.error(f"Failed to revoke API key {key_id}: {e}")
            return jsonify({'error': 'Failed to revoke key'}), 500
        return jsonify({'success': True})

    return blueprint
