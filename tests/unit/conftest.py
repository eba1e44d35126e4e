"""Shared fixtures for the cloudstore unit tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import patch

import pytest

from cloudstore.client.models import FileMetadata
from cloudstore.exceptions import StorageError
from cloudstore.upload.buffer_sequence import BufferSequence
from cloudstore.upload.resumable_upload_session import (
    LastResponse,
    ResumableUploadSession,
    UploadResult,
    UploadState,
)

QUANTUM = 16

# A scripted action is one of:
#   None              the backend commits everything it received
#   int               the backend commits only that many bytes (short write)
#   StorageError      the call fails with that error
#   callable          called with (session, data, final) and returns the result
Action = object


class ScriptedUploadSession(ResumableUploadSession):
    """In-memory session whose backend behaviour is scripted call by call."""

    def __init__(self, quantum: int = QUANTUM, session_id: str = "session-1"):
        self.quantum = quantum
        self._session_id = session_id
        self.next_byte = 0
        self.is_done = False
        self.last: LastResponse = UploadResult(session_url=session_id)
        self.committed = bytearray()
        self.calls: list[tuple[str, bytes, int | None]] = []
        self.upload_actions: list[Action] = []
        self.reset_actions: list[Action] = []

    def upload_chunk(self, buffers: BufferSequence) -> UploadResult:
        data = buffers.tobytes()
        self.calls.append(("upload_chunk", data, None))
        return self._apply(data, final=False)

    def upload_final_chunk(
        self, buffers: BufferSequence, upload_size: int
    ) -> UploadResult:
        data = buffers.tobytes()
        self.calls.append(("upload_final_chunk", data, upload_size))
        return self._apply(data, final=True)

    def reset_session(self) -> UploadResult:
        self.calls.append(("reset_session", b"", None))
        action = self.reset_actions.pop(0) if self.reset_actions else None
        if isinstance(action, StorageError):
            self.last = action
            raise action
        if isinstance(action, int):
            self.next_byte = action
            del self.committed[action:]
        return self._result()

    def commit(self, data: bytes, final: bool) -> UploadResult:
        self.committed += data
        self.next_byte += len(data)
        if final:
            self.is_done = True
        return self._result()

    def _apply(self, data: bytes, final: bool) -> UploadResult:
        action = self.upload_actions.pop(0) if self.upload_actions else None
        if isinstance(action, StorageError):
            self.last = action
            raise action
        if callable(action):
            result = action(self, data, final)
            self.last = result
            return result
        if isinstance(action, int):
            return self.commit(data[:action], final=False)
        return self.commit(data, final)

    def _result(self) -> UploadResult:
        result = UploadResult(
            session_url=self._session_id,
            last_committed_byte=self.next_byte - 1 if self.next_byte else None,
            state=UploadState.DONE if self.is_done else UploadState.IN_PROGRESS,
            final_metadata=(
                FileMetadata(id="file-1", size=self.next_byte) if self.is_done else None
            ),
        )
        self.last = result
        return result

    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def calls_named(self, name: str) -> list[tuple[str, bytes, int | None]]:
        return [call for call in self.calls if call[0] == name]

    @property
    def next_expected_byte(self) -> int:
        return self.next_byte

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def chunk_size_quantum(self) -> int:
        return self.quantum

    @property
    def done(self) -> bool:
        return self.is_done

    @property
    def last_response(self) -> LastResponse:
        return self.last


@pytest.fixture
def session_factory() -> Callable[..., ScriptedUploadSession]:
    """Build scripted upload sessions."""
    return ScriptedUploadSession


@pytest.fixture
def scripted_session() -> ScriptedUploadSession:
    """A scripted session with a 16 byte chunk quantum."""
    return ScriptedUploadSession()


@pytest.fixture(autouse=True)
def no_sleep():
    """Keep backoff delays from blocking the tests."""
    with patch("time.sleep") as sleep:
        yield sleep


@pytest.fixture
def payload() -> Callable[[int], bytes]:
    """Deterministic payload of the requested size."""

    def make(size: int) -> bytes:
        return bytes(index % 251 for index in range(size))

    return make
