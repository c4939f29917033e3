from __future__ import annotations

from datetime import datetime, timezone

from keyforge.models import ApiKeyRecord
from keyforge.services import KeyService, KeyVerifier
from keyforge.services.key_codec import hash_api_key


class DummyApiKeyRepo:
    def __init__(self, records=None):
        self.calls = []
        self.records = {record.hashed_key: record for record in records or []}

    def find_by_hash(self, hashed_key):
        self.calls.append(('find_by_hash', hashed_key))
        return self.records.get(hashed_key)

    def create(self, **kwargs):
        self.calls.append(('create', kwargs))
        record = ApiKeyRecord(
            id=kwargs['key_id'],
            name=kwargs['name'],
            period=kwargs['period'],
            origin=kwargs['origin'],
            value=kwargs['value'],
            hashed_key=kwargs['hashed_key'],
            last4=kwargs['last4'],
            created_at=kwargs['created_at'],
            user_id=kwargs['user_id'],
            image_url=kwargs['image_url'],
        )
        self.records[record.hashed_key] = record
        return record

    def revoke(self, key_id):
        self.calls.append(('revoke', key_id))
        return any(record.id == key_id for record in self.records.values())


def _record(secret, revoked=False):
    return ApiKeyRecord(
        id='key-1',
        name='Vase',
        period='Ming',
        origin='China',
        value=5000,
        hashed_key=hash_api_key(secret),
        last4=secret[-4:],
        created_at='2026-10-19T00:00:00+00:00',
        user_id='user_1',
        revoked=revoked,
    )


def test_verifier_valid_key():
    verifier = KeyVerifier(DummyApiKeyRepo([_record('sk_live_secret1234')]))
    result = verifier.verify('sk_live_secret1234')
    assert result.valid is True
    assert result.key_id == 'key-1'
    assert result.user_id == 'user_1'
    assert result.reason is None


def test_verifier_looks_up_by_fingerprint_only():
    repo = DummyApiKeyRepo()
    KeyVerifier(repo).verify('sk_live_secret1234')
    assert repo.calls == [('find_by_hash', hash_api_key('sk_live_secret1234'))]


def test_verifier_not_found():
    result = KeyVerifier(DummyApiKeyRepo()).verify('sk_live_nothing')
    assert result.valid is False
    assert result.reason == 'not_found'


def test_verifier_revoked():
    verifier = KeyVerifier(DummyApiKeyRepo([_record('sk_live_secret1234', revoked=True)]))
    result = verifier.verify('sk_live_secret1234')
    assert result.valid is False
    assert result.reason == 'revoked'
    assert result.key_id is None


def test_key_service_issue_stores_only_hash_and_suffix():
    repo = DummyApiKeyRepo()
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    service = KeyService(repo, key_prefix='sk_live_', key_bytes=24, clock=lambda: now)

    record, plaintext = service.issue(name='Vase', period='Ming', origin='China', value=5000, user_id='user_1')

    stored = repo.calls[0][1]
    assert plaintext not in stored.values()
    assert stored['hashed_key'] == hash_api_key(plaintext)
    assert stored['last4'] == plaintext[-4:]
    assert stored['created_at'] == now.isoformat()
    assert record.revoked is False
    assert service.mask(record) == f'sk_live_...{plaintext[-4:]}'


def test_issued_key_round_trips_through_verifier():
    repo = DummyApiKeyRepo()
    service = KeyService(repo)
    record, plaintext = service.issue(name='Vase', period='Ming', origin='China', value=5000)

    assert repo.find_by_hash(hash_api_key(plaintext)) == record
    result = KeyVerifier(repo).verify(plaintext)
    assert result.valid is True
    assert result.key_id == record.id


def test_key_service_revoke_delegates():
    repo = DummyApiKeyRepo([_record('sk_live_secret1234')])
    service = KeyService(repo)
    assert service.revoke('key-1') is True
    assert service.revoke('missing') is False
    assert ('revoke', 'key-1') in repo.calls
