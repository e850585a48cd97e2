"""Tests for code resolution and artifact streaming."""

import io

import pytest

from common.logging_config import SensitiveDataFilter
from relay.exceptions import (
    ArtifactMissingError,
    ArtifactReadError,
    CodeExpiredError,
    CodeNotFoundError,
)
from relay.services.retrieval_service import ArtifactStream


def _merge(services, name, payload):
    services.chunk_store.put(name, 0, payload)
    return services.reassembler.merge(name)


def test_retrieve_streams_artifact(services, clock):
    """A live code yields the artifact's name, size and bytes."""
    result = _merge(services, 'notes.txt', b'hello world')

    artifact = services.retrieval.retrieve(result.code)

    assert artifact.name == 'notes.txt'
    assert artifact.size == 11
    assert artifact.expires_at == clock.now + 3600
    assert b''.join(artifact.stream) == b'hello world'
    assert artifact.stream.closed


def test_retrieve_unknown_code(services):
    """An unregistered code is not found."""
    with pytest.raises(CodeNotFoundError):
        services.retrieval.retrieve('nope1234')


def test_retrieve_malformed_code(services):
    """A code with the wrong shape is not found without touching storage."""
    with pytest.raises(CodeNotFoundError):
        services.retrieval.retrieve('../../etc/passwd')


def test_code_valid_just_before_expiry(services, clock):
    """A code 3599 seconds old still downloads."""
    result = _merge(services, 'a.txt', b'data')
    clock.advance(3599)

    artifact = services.retrieval.retrieve(result.code)
    artifact.stream.close()


def test_code_valid_at_exact_window(services, clock):
    """A code exactly 3600 seconds old still downloads."""
    result = _merge(services, 'a.txt', b'data')
    clock.advance(3600)

    artifact = services.retrieval.retrieve(result.code)
    artifact.stream.close()


def test_code_expired_after_window(services, clock):
    """A code 3601 seconds old is expired but not deleted."""
    result = _merge(services, 'a.txt', b'data')
    clock.advance(3601)

    with pytest.raises(CodeExpiredError):
        services.retrieval.retrieve(result.code)

    assert result.code in services.registry
    assert services.artifact_store.exists('a.txt')


def test_retrieve_missing_artifact(services):
    """A registry entry without its file is a storage inconsistency."""
    result = _merge(services, 'a.txt', b'data')
    services.artifact_store.delete('a.txt')

    with pytest.raises(ArtifactMissingError):
        services.retrieval.retrieve(result.code)


def test_stream_survives_artifact_deletion(services):
    """An opened download keeps streaming after the file is unlinked."""
    payload = b'x' * 200_000
    result = _merge(services, 'a.bin', payload)

    artifact = services.retrieval.retrieve(result.code)
    first = next(artifact.stream)
    services.artifact_store.delete('a.bin')

    assert first + b''.join(artifact.stream) == payload


def test_stream_detects_truncation():
    """A stream shorter than its declared size ends with an error."""
    stream = ArtifactStream(io.BytesIO(b'short'), declared_size=10, label='a.bin')

    with pytest.raises(ArtifactReadError):
        b''.join(stream)
    assert stream.closed


def test_stream_detects_growth():
    """A stream longer than its declared size ends with an error."""
    stream = ArtifactStream(io.BytesIO(b'0123456789'), declared_size=4, label='a.bin', piece_size=8)

    with pytest.raises(ArtifactReadError):
        list(stream)


def test_stream_wraps_read_errors():
    """Read failures become ArtifactReadError."""
    class BrokenFile(io.BytesIO):
        def read(self, size=-1):
            raise OSError('disk gone')

    stream = ArtifactStream(BrokenFile(), declared_size=4, label='a.bin')

    with pytest.raises(ArtifactReadError):
        next(stream)
    assert stream.closed


def test_stream_close_is_idempotent():
    """Closing twice is harmless and ends iteration."""
    with ArtifactStream(io.BytesIO(b'data'), declared_size=4, label='a.bin') as stream:
        stream.close()

    assert stream.closed
    assert list(stream) == []


def test_stream_yields_pieces():
    """Bytes are delivered in pieces no larger than the piece size."""
    stream = ArtifactStream(io.BytesIO(b'abcdefghij'), declared_size=10, label='a.bin', piece_size=4)

    assert list(stream) == [b'abcd', b'efgh', b'ij']


def test_error_messages_are_masked_when_logged(services):
    """Error texts carry the code in a form the log filter masks."""
    result = _merge(services, 'a.txt', b'data')
    services.artifact_store.delete('a.txt')

    with pytest.raises(ArtifactMissingError) as excinfo:
        services.retrieval.retrieve(result.code)

    masked = SensitiveDataFilter()._mask_value(str(excinfo.value))
    assert result.code not in masked
    assert f'[code={result.code[:3]}*****]' in masked
