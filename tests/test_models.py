"""Tests for profile, credential and session models."""

from datetime import datetime, timedelta, timezone

from sharedcreds.models import CachedSession, CredentialValue, Profile, ResolverState, SessionCredentials


def test_profile_role_chained():
    assert Profile(name="a", access_key_id="k", secret_access_key="s").is_role_chained is False
    assert Profile(name="b", role_arn="arn:r", source_profile="a").is_role_chained is True


def test_credential_value_to_env():
    value = CredentialValue(access_key_id="AKIA", secret_access_key="secret", session_token="token")

    assert value.to_env() == {
        "AWS_ACCESS_KEY_ID": "AKIA",
        "AWS_SECRET_ACCESS_KEY": "secret",
        "AWS_SESSION_TOKEN": "token",
    }


def test_credential_value_to_env_without_token():
    env = CredentialValue(access_key_id="AKIA", secret_access_key="secret").to_env()
    assert "AWS_SESSION_TOKEN" not in env


class TestSessionCredentials:
    """Test session credential serialization."""

    def test_json_round_trip(self):
        credentials = SessionCredentials(
            access_key_id="ASIA",
            secret_access_key="secret",
            session_token="token",
            expiration=datetime(2030, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
        )

        restored = SessionCredentials.model_validate_json(credentials.model_dump_json(by_alias=True))

        assert restored == credentials

    def test_naive_expiration_treated_as_utc(self):
        credentials = SessionCredentials.model_validate(
            {
                "AccessKeyId": "ASIA",
                "SecretAccessKey": "secret",
                "SessionToken": "token",
                "Expiration": datetime(2030, 1, 1),
            }
        )

        assert credentials.expiration == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_to_value(self):
        expiration = datetime(2030, 1, 1, tzinfo=timezone.utc)
        credentials = SessionCredentials(
            access_key_id="ASIA", secret_access_key="secret", session_token="token", expiration=expiration
        )

        value = credentials.to_value()

        assert value.access_key_id == "ASIA"
        assert value.expires_at == expiration
        assert value.provider_name == "SharedCredentialsProvider"


def test_cached_session_drops_response_metadata(mock_sts_response):
    session = CachedSession.from_response(mock_sts_response)

    assert "ResponseMetadata" not in session.to_json()
    assert CachedSession.from_json(session.to_json()) == session


class TestResolverState:
    """Test expiry bookkeeping."""

    def test_uninitialized_is_expired(self):
        assert ResolverState().is_expired() is True

    def test_static_never_expires(self):
        state = ResolverState()
        state.mark_static()

        assert state.is_expired(now=datetime(9999, 1, 1, tzinfo=timezone.utc)) is False

    def test_window_subtracted(self):
        expiration = datetime(2030, 1, 1, tzinfo=timezone.utc)
        state = ResolverState()
        state.set_expiration(expiration, timedelta(minutes=1))

        assert state.expiration == expiration - timedelta(minutes=1)
        assert state.is_expired(now=expiration - timedelta(minutes=1, microseconds=1)) is False
        assert state.is_expired(now=expiration - timedelta(minutes=1)) is True

    def test_reset(self):
        state = ResolverState()
        state.mark_static()
        state.reset()

        assert state.is_expired() is True
