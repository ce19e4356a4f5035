"""Tests for the scanned token validation pipeline."""

import json
from datetime import timedelta

import pytest

from campus_checkin.schemas.token import AttendanceToken
from campus_checkin.services.codec import encode
from campus_checkin.services.generator import TokenGenerator
from campus_checkin.services.replay import ReplayGuard
from campus_checkin.services.signing import SignatureEngine
from campus_checkin.services.validator import TokenValidator


@pytest.fixture()
def event_window(clock):
    """Event that started 30 minutes ago and runs for two more hours."""
    return clock() - timedelta(minutes=30), clock() + timedelta(hours=2)


@pytest.fixture()
def token(generator: TokenGenerator, event_window) -> AttendanceToken:
    start, end = event_window
    return generator.build_token("E1", "Line Follower Workshop", "Robotics Club", "Lab 3", start, end)


def _tamper(token: AttendanceToken, **wire_overrides) -> str:
    data = json.loads(encode(token))
    data.update(wire_overrides)
    return json.dumps(data)


class TestHappyPath:
    def test_fresh_token_is_valid(self, validator: TokenValidator, token, clock) -> None:
        clock.advance(seconds=5)
        result = validator.validate(encode(token))

        assert result.is_valid
        assert result.event_id == "E1"
        assert result.metadata == token.metadata
        assert result.error is None
        assert result.details.model_dump() == {
            "format_valid": True,
            "hash_valid": True,
            "time_valid": True,
            "replay_check": True,
        }

    def test_upcoming_event_token_is_valid_immediately(
        self, validator: TokenValidator, generator: TokenGenerator, clock
    ) -> None:
        """An event starting in an hour is already open thanks to the grace period."""
        start = clock() + timedelta(hours=1)
        end = clock() + timedelta(hours=3)
        token = generator.build_token("E1", "Line Follower Workshop", "Robotics Club", "Lab 3", start, end)

        result = validator.validate(encode(token), start, end)

        assert result.is_valid
        assert result.event_id == "E1"
        assert token.metadata.valid_from == clock()
        assert result.details.replay_check is True

    def test_details_use_wire_names(self, validator: TokenValidator, token) -> None:
        details = validator.validate(encode(token)).details
        assert details.model_dump(by_alias=True) == {
            "formatValid": True,
            "hashValid": True,
            "timeValid": True,
            "replayCheck": True,
        }

    def test_authoritative_event_times_are_accepted(
        self, validator: TokenValidator, token, event_window
    ) -> None:
        start, end = event_window
        assert validator.validate(encode(token), start, end).is_valid


class TestTampering:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"eventId": "E2"},
            {"timestamp": "2025-03-14T09:00:00.001Z"},
            {"nonce": "ab" * 16},
        ],
    )
    def test_changed_signed_field_fails_signature(
        self, validator: TokenValidator, token, overrides
    ) -> None:
        result = validator.validate(_tamper(token, **overrides))

        assert not result.is_valid
        assert result.error_code == "invalid_signature"
        assert result.error == "Invalid QR code signature"
        assert result.details.format_valid is True
        assert result.details.hash_valid is False
        assert result.details.time_valid is False
        assert result.event_id is None

    def test_token_signed_with_another_secret(self, replay_guard, clock, token, event_window) -> None:
        other = TokenValidator(SignatureEngine("another-secret"), replay_guard, clock=clock)
        assert other.validate(encode(token)).error_code == "invalid_signature"

    def test_rejected_signature_does_not_consume_replay_slot(
        self, validator: TokenValidator, replay_guard: ReplayGuard, token
    ) -> None:
        validator.validate(_tamper(token, eventId="E2"))
        assert len(replay_guard) == 0


class TestReplay:
    def test_second_scan_within_window_is_replay(self, validator: TokenValidator, token) -> None:
        raw = encode(token)
        assert validator.validate(raw).is_valid

        result = validator.validate(raw)
        assert not result.is_valid
        assert result.error_code == "replayed"
        assert result.error == "QR code was recently scanned (replay protection)"
        assert result.details.hash_valid and result.details.time_valid
        assert result.details.replay_check is False

    def test_token_admits_again_after_replay_window(
        self, signature_engine, token, clock
    ) -> None:
        guard_clock = type(clock)(clock())
        guard = ReplayGuard(window=timedelta(minutes=5), clock=guard_clock)
        validator = TokenValidator(signature_engine, guard, clock=clock)
        raw = encode(token)

        assert validator.validate(raw).is_valid
        assert not validator.validate(raw).is_valid
        guard_clock.advance(minutes=5, seconds=1)
        assert validator.validate(raw).is_valid

    def test_distinct_tokens_for_same_event_are_independent(
        self, validator: TokenValidator, generator: TokenGenerator, event_window
    ) -> None:
        start, end = event_window
        first = generator.build_token("E1", "t", "c", "l", start, end)
        second = generator.build_token("E1", "t", "c", "l", start, end)
        assert validator.validate(encode(first)).is_valid
        assert validator.validate(encode(second)).is_valid


class TestTimeWindow:
    @pytest.fixture()
    def window_token(self, generator: TokenGenerator, clock) -> AttendanceToken:
        # valid_from = now, valid_until = now + 2h with zero grace
        gen = TokenGenerator(
            generator.engine, clock=clock, grace_before=timedelta(0), grace_after=timedelta(0)
        )
        return gen.build_token("E1", "t", "c", "l", clock(), clock() + timedelta(hours=2))

    def test_exact_boundaries_are_inclusive(
        self, signature_engine, window_token, clock, replay_guard
    ) -> None:
        validator = TokenValidator(signature_engine, replay_guard, clock=clock)
        assert validator.validate(encode(window_token)).is_valid

        replay_guard.clear()
        clock.advance(hours=2)
        assert validator.validate(encode(window_token)).is_valid

    def test_one_millisecond_past_end_is_rejected(
        self, validator: TokenValidator, window_token, clock
    ) -> None:
        clock.advance(hours=2, milliseconds=1)
        result = validator.validate(encode(window_token))
        assert result.error_code == "outside_time_window"
        assert result.error == "QR code is outside valid time window"
        assert result.details.hash_valid is True
        assert result.details.time_valid is False

    def test_one_millisecond_before_start_is_rejected(
        self, signature_engine, replay_guard, window_token, clock
    ) -> None:
        early = type(clock)(clock() - timedelta(milliseconds=1))
        validator = TokenValidator(signature_engine, replay_guard, clock=early)
        assert validator.validate(encode(window_token)).error_code == "outside_time_window"

    def test_authoritative_end_time_overrides_generous_metadata(
        self, validator: TokenValidator, token, clock
    ) -> None:
        # The event was cut short after the token was issued.
        start = clock() - timedelta(hours=3)
        end = clock() - timedelta(hours=1, seconds=1)
        assert validator.validate(encode(token), start, end).error_code == "outside_time_window"

    def test_naive_authoritative_times_are_treated_as_utc(
        self, validator: TokenValidator, token, event_window
    ) -> None:
        start, end = event_window
        result = validator.validate(encode(token), start.replace(tzinfo=None), end.replace(tzinfo=None))
        assert result.is_valid


class TestAge:
    def test_token_older_than_max_age_is_expired(
        self, signature_engine, replay_guard, clock
    ) -> None:
        generator = TokenGenerator(signature_engine, clock=clock)
        token = generator.build_token(
            "E1", "t", "c", "l", clock(), clock() + timedelta(days=3)
        )
        clock.advance(hours=25)
        validator = TokenValidator(signature_engine, replay_guard, clock=clock)

        result = validator.validate(encode(token))
        assert result.error_code == "expired"
        assert result.error == "QR code has expired (too old)"
        assert result.details.format_valid is True
        assert result.details.hash_valid is False

    def test_future_timestamp_beyond_skew_is_rejected(
        self, signature_engine, replay_guard, clock, event_window
    ) -> None:
        ahead = type(clock)(clock() + timedelta(minutes=10))
        token = TokenGenerator(signature_engine, clock=ahead).build_token(
            "E1", "t", "c", "l", *event_window
        )
        validator = TokenValidator(signature_engine, replay_guard, clock=clock)
        result = validator.validate(encode(token))
        assert result.error_code == "expired"
        assert result.error == "QR code timestamp is in the future"

    def test_small_clock_skew_is_tolerated(
        self, signature_engine, replay_guard, clock, event_window
    ) -> None:
        ahead = type(clock)(clock() + timedelta(seconds=30))
        token = TokenGenerator(signature_engine, clock=ahead).build_token(
            "E1", "t", "c", "l", *event_window
        )
        validator = TokenValidator(signature_engine, replay_guard, clock=clock)
        assert validator.validate(encode(token)).is_valid


class TestFormatAndVersion:
    def test_garbage_fails_format(self, validator: TokenValidator) -> None:
        result = validator.validate("https://example.org/not-a-token")
        assert result.error_code == "invalid_format"
        assert result.details.format_valid is False

    @pytest.mark.parametrize(
        "raw",
        ["[" * 50_000, '{"eventId": "\ud800"}', "\udfff"],
    )
    def test_hostile_input_is_a_result_not_an_exception(
        self, validator: TokenValidator, raw: str
    ) -> None:
        result = validator.validate(raw)
        assert not result.is_valid
        assert result.error_code == "invalid_format"

    def test_escaped_surrogate_in_signed_field(self, validator: TokenValidator, token) -> None:
        result = validator.validate(_tamper(token, eventId="E1\ud800"))
        assert not result.is_valid
        assert result.error_code in {"invalid_format", "invalid_signature"}

    def test_unsupported_version(self, validator: TokenValidator, token) -> None:
        result = validator.validate(_tamper(token, version="1.0"))
        assert result.error_code == "unsupported_version"
        assert result.details.format_valid is True
        assert result.details.hash_valid is False

    def test_missing_version_with_nonce_is_incomplete(self, validator: TokenValidator, token) -> None:
        data = json.loads(encode(token))
        del data["version"]
        result = validator.validate(json.dumps(data))
        assert result.error_code == "invalid_format"
        assert "version" in result.error


class TestLegacyTokens:
    @pytest.fixture()
    def legacy_raw(self, signature_engine: SignatureEngine, token: AttendanceToken) -> str:
        data = json.loads(encode(token))
        del data["nonce"]
        del data["version"]
        data["hash"] = signature_engine.sign(token.event_id, token.issued_at_iso, None)
        return json.dumps(data)

    def test_rejected_by_default(self, validator: TokenValidator, legacy_raw: str) -> None:
        result = validator.validate(legacy_raw)
        assert result.error_code == "invalid_format"
        assert "nonce" in result.error

    def test_accepted_when_enabled_without_replay_check(
        self, signature_engine, replay_guard, clock, legacy_raw: str
    ) -> None:
        validator = TokenValidator(signature_engine, replay_guard, clock=clock, accept_legacy=True)
        first = validator.validate(legacy_raw)
        assert first.is_valid
        assert first.details.replay_check is False
        assert validator.validate(legacy_raw).is_valid
        assert len(replay_guard) == 0
