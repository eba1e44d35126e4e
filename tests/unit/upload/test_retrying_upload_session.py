"""Tests for RetryingUploadSession."""

from __future__ import annotations

import pytest

from cloudstore.exceptions import StatusCode, StorageError
from cloudstore.policies.backoff_policy import ExponentialBackoffPolicy
from cloudstore.policies.retry_policy import LimitedErrorCountRetryPolicy
from cloudstore.upload.buffer_sequence import BufferSequence
from cloudstore.upload.resumable_upload_session import UploadResult
from cloudstore.upload.retrying_upload_session import RetryingUploadSession

TRANSIENT = StorageError(StatusCode.UNAVAILABLE, "backend unavailable")
PERMANENT = StorageError(StatusCode.PERMISSION_DENIED, "not allowed")


def _retrying(session, maximum_failures: int = 3) -> RetryingUploadSession:
    return RetryingUploadSession(
        session,
        LimitedErrorCountRetryPolicy(maximum_failures),
        ExponentialBackoffPolicy(0.01, 0.1, 2.0),
    )


def test_two_transient_failures_cause_two_resets(
    scripted_session, payload, no_sleep
) -> None:
    data = payload(32)
    scripted_session.upload_actions = [TRANSIENT, TRANSIENT, None]
    session = _retrying(scripted_session, maximum_failures=2)

    result = session.upload_chunk(BufferSequence.of(data))

    assert scripted_session.call_names().count("reset_session") == 2
    assert session.next_expected_byte == 32
    assert result.last_committed_byte == 31
    assert bytes(scripted_session.committed) == data
    assert no_sleep.call_count == 2


def test_final_chunk_reaches_done(scripted_session, payload) -> None:
    data = payload(20)
    scripted_session.upload_actions = [TRANSIENT, None]
    session = _retrying(scripted_session)

    result = session.upload_final_chunk(BufferSequence.of(data), 20)

    assert result.done
    assert session.done
    assert scripted_session.calls[-1] == ("upload_final_chunk", data, 20)


def test_reset_progress_trims_committed_bytes(scripted_session, payload) -> None:
    data = payload(48)

    def commit_then_fail(session, sent, final):
        session.commit(sent[:16], final=False)
        raise TRANSIENT

    scripted_session.upload_actions = [commit_then_fail, None]
    session = _retrying(scripted_session)

    session.upload_chunk(BufferSequence.of(data))

    uploads = scripted_session.calls_named("upload_chunk")
    assert uploads[1][1] == data[16:]
    assert bytes(scripted_session.committed) == data


def test_permanent_error_is_not_retried(scripted_session, payload) -> None:
    scripted_session.upload_actions = [PERMANENT]
    session = _retrying(scripted_session)

    with pytest.raises(StorageError) as excinfo:
        session.upload_chunk(BufferSequence.of(payload(16)))

    assert excinfo.value.code == StatusCode.PERMISSION_DENIED
    assert excinfo.value.message == "Permanent error in upload_chunk: not allowed"
    assert scripted_session.call_names() == ["upload_chunk"]


def test_exhausted_policy_reports_exhaustion(scripted_session, payload) -> None:
    scripted_session.upload_actions = [TRANSIENT, TRANSIENT, TRANSIENT]
    session = _retrying(scripted_session, maximum_failures=2)

    with pytest.raises(StorageError) as excinfo:
        session.upload_chunk(BufferSequence.of(payload(16)))

    assert excinfo.value.code == StatusCode.UNAVAILABLE
    assert excinfo.value.message.startswith("Retry policy exhausted in upload_chunk")
    assert scripted_session.call_names().count("reset_session") == 2


def test_resets_share_the_upload_budget(scripted_session, payload) -> None:
    scripted_session.upload_actions = [TRANSIENT]
    scripted_session.reset_actions = [TRANSIENT, None]
    session = _retrying(scripted_session, maximum_failures=1)

    with pytest.raises(StorageError) as excinfo:
        session.upload_chunk(BufferSequence.of(payload(16)))

    assert excinfo.value.message.startswith("Retry policy exhausted in upload_chunk")
    assert scripted_session.call_names() == ["upload_chunk", "reset_session"]


def test_next_byte_moving_backwards_is_internal_error(
    scripted_session, payload
) -> None:
    scripted_session.commit(payload(32), final=False)
    scripted_session.upload_actions = [TRANSIENT]
    scripted_session.reset_actions = [16]
    session = _retrying(scripted_session)

    with pytest.raises(StorageError) as excinfo:
        session.upload_chunk(BufferSequence.of(payload(16)))

    assert excinfo.value.code == StatusCode.INTERNAL
    assert scripted_session.call_names() == ["upload_chunk", "reset_session"]


def test_short_write_retries_without_reset_or_sleep(
    scripted_session, payload, no_sleep
) -> None:
    data = payload(32)
    scripted_session.upload_actions = [16, None]
    session = _retrying(scripted_session, maximum_failures=0)

    session.upload_chunk(BufferSequence.of(data))

    assert scripted_session.call_names() == ["upload_chunk", "upload_chunk"]
    assert scripted_session.calls[1][1] == data[16:]
    assert session.next_expected_byte == 32
    no_sleep.assert_not_called()


def test_committing_more_than_sent_is_internal_error(
    scripted_session, payload
) -> None:
    def overshoot(session, sent, final):
        return session.commit(sent * 2, final=False)

    scripted_session.upload_actions = [overshoot]
    session = _retrying(scripted_session)

    with pytest.raises(StorageError) as excinfo:
        session.upload_chunk(BufferSequence.of(payload(16)))

    assert excinfo.value.code == StatusCode.INTERNAL


def test_reset_session_is_retried(scripted_session) -> None:
    scripted_session.reset_actions = [TRANSIENT, None]
    session = _retrying(scripted_session)

    result = session.reset_session()

    assert isinstance(result, UploadResult)
    assert scripted_session.call_names() == ["reset_session", "reset_session"]


def test_reset_session_permanent_failure(scripted_session) -> None:
    scripted_session.reset_actions = [PERMANENT]
    session = _retrying(scripted_session)

    with pytest.raises(StorageError) as excinfo:
        session.reset_session()

    assert excinfo.value.message == "Permanent error in reset_session: not allowed"


def test_properties_delegate_to_wrapped_session(scripted_session) -> None:
    session = _retrying(scripted_session)

    assert session.session_id == "session-1"
    assert session.chunk_size_quantum == 16
    assert not session.done
    assert session.last_response is scripted_session.last_response
