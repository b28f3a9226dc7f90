"""Unit tests for JWT access/refresh tokens."""

import uuid

from lectern.kernel.identity.jwt import JWTManager


class TestJWTManager:
    """Tests for token creation and verification."""

    def test_access_token_round_trip(self, jwt_manager):
        user_id = uuid.uuid4()
        token, exp, jti = jwt_manager.create_access_token(user_id, "learner@example.com")

        payload = jwt_manager.verify_access_token(token)
        assert payload is not None
        assert payload.sub == str(user_id)
        assert payload.email == "learner@example.com"
        assert payload.jti == jti

    def test_refresh_token_is_not_an_access_token(self, jwt_manager):
        pair = jwt_manager.create_token_pair(uuid.uuid4(), "learner@example.com")

        assert jwt_manager.verify_access_token(pair.refresh_token) is None
        assert jwt_manager.verify_refresh_token(pair.refresh_token) is not None
        assert jwt_manager.verify_refresh_token(pair.access_token) is None

    def test_token_pair_expiry(self, jwt_manager):
        pair = jwt_manager.create_token_pair(uuid.uuid4(), "learner@example.com")
        assert pair.token_type == "bearer"
        assert 30 * 60 - 5 <= pair.expires_in <= 30 * 60

    def test_wrong_secret_rejected(self, jwt_manager):
        token, _, _ = jwt_manager.create_access_token(uuid.uuid4(), "learner@example.com")
        other = JWTManager(secret_key="another-secret-key-entirely-different")
        assert other.verify_access_token(token) is None

    def test_garbage_token_rejected(self, jwt_manager):
        assert jwt_manager.verify_access_token("not.a.jwt") is None

    def test_hash_token_is_stable_sha256(self):
        digest = JWTManager.hash_token("abc")
        assert digest == JWTManager.hash_token("abc")
        assert len(digest) == 64
