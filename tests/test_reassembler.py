"""Tests for chunk reassembly and code registration."""

import os
import threading

import pytest

from relay.exceptions import (
    EmptyResultError,
    MergeIOError,
    MissingFileNameError,
    NoChunksFoundError,
)
from relay.services.reassembler import MAX_MINT_ATTEMPTS, Reassembler

MB = 1024 * 1024


def test_merge_concatenates_in_index_order(services):
    """Chunks are folded by numeric index, not arrival order."""
    for index in (2, 0, 1):
        services.chunk_store.put('a.txt', index, f'part{index};'.encode())

    result = services.reassembler.merge('a.txt')

    artifact = services.artifact_store.get_artifact_path('a.txt')
    assert artifact.read_bytes() == b'part0;part1;part2;'
    assert result.size == 18
    assert result.chunk_count == 3
    assert result.artifact_name == 'a.txt'


def test_merge_orders_double_digit_indexes(services):
    """Chunk 2 precedes chunk 10."""
    for index in range(11):
        services.chunk_store.put('big.bin', index, bytes([index]))

    services.reassembler.merge('big.bin')

    data = services.artifact_store.get_artifact_path('big.bin').read_bytes()
    assert data == bytes(range(11))


def test_merge_large_file_out_of_order(services):
    """A 25 MB file uploaded as 10/10/5 MB chunks in order 2, 0, 1 is reassembled exactly."""
    parts = [os.urandom(10 * MB), os.urandom(10 * MB), os.urandom(5 * MB)]
    for index in (2, 0, 1):
        services.chunk_store.put('video.mp4', index, parts[index])

    result = services.reassembler.merge('video.mp4')

    assert result.size == 25 * MB
    data = services.artifact_store.get_artifact_path('video.mp4').read_bytes()
    assert data == b''.join(parts)


def test_merge_registers_code(services, clock):
    """The returned code resolves to the merged artifact."""
    services.chunk_store.put('a.txt', 0, b'hello')

    result = services.reassembler.merge('a.txt')

    entry = services.registry.resolve(result.code)
    assert entry.artifact_name == 'a.txt'
    assert entry.created_at == clock.now
    assert result.created_at == clock.now
    assert len(result.code) == 8


def test_merge_consumes_chunks(services):
    """Merged chunks are deleted and the file name cannot be merged again."""
    services.chunk_store.put('a.txt', 0, b'hello')
    services.reassembler.merge('a.txt')

    assert services.chunk_store.list_chunks('a.txt') == []
    with pytest.raises(NoChunksFoundError):
        services.reassembler.merge('a.txt')


def test_merge_leaves_other_files_alone(services):
    """Only chunks of the merged file are consumed."""
    services.chunk_store.put('a.txt', 0, b'a')
    services.chunk_store.put('b.txt', 0, b'b')

    services.reassembler.merge('a.txt')

    assert len(services.chunk_store.list_chunks('b.txt')) == 1


def test_merge_without_chunks(services):
    """Merging a name with no chunks fails."""
    with pytest.raises(NoChunksFoundError):
        services.reassembler.merge('ghost.txt')


def test_merge_without_name(services):
    """A merge must name its file."""
    with pytest.raises(MissingFileNameError):
        services.reassembler.merge('')


def test_merge_empty_result(services):
    """Chunks adding up to zero bytes produce no artifact and no code."""
    chunk_path = services.chunk_store.get_chunk_path('empty.txt', 0)
    chunk_path.write_bytes(b'')

    with pytest.raises(EmptyResultError):
        services.reassembler.merge('empty.txt')

    assert not services.artifact_store.exists('empty.txt')
    assert services.registry.list_all() == []


def test_merge_again_after_new_upload_overwrites_artifact(services):
    """A second upload under the same name replaces the artifact."""
    services.chunk_store.put('a.txt', 0, b'first version')
    first = services.reassembler.merge('a.txt')
    services.chunk_store.put('a.txt', 0, b'second')
    second = services.reassembler.merge('a.txt')

    assert first.code != second.code
    assert services.artifact_store.get_artifact_path('a.txt').read_bytes() == b'second'


def test_merge_remints_on_collision(services):
    """A minted code already in the registry is replaced by a fresh one."""
    services.registry.register('taken123', 'other.txt')
    codes = iter(['taken123', 'fresh456'])
    reassembler = Reassembler(
        services.chunk_store,
        services.artifact_store,
        services.registry,
        minter=lambda: next(codes),
    )
    services.chunk_store.put('a.txt', 0, b'data')

    result = reassembler.merge('a.txt')

    assert result.code == 'fresh456'
    assert services.registry.resolve('taken123').artifact_name == 'other.txt'


def test_merge_gives_up_after_repeated_collisions(services):
    """Minting stops after a bounded number of collisions."""
    services.registry.register('taken123', 'other.txt')
    reassembler = Reassembler(
        services.chunk_store,
        services.artifact_store,
        services.registry,
        minter=lambda: 'taken123',
    )
    services.chunk_store.put('a.txt', 0, b'data')

    with pytest.raises(MergeIOError):
        reassembler.merge('a.txt')

    assert MAX_MINT_ATTEMPTS == 5


def test_merge_wraps_read_failures(services, monkeypatch):
    """A chunk that vanishes mid-merge surfaces as MergeIOError."""
    services.chunk_store.put('a.txt', 0, b'one')
    services.chunk_store.put('a.txt', 1, b'two')

    original_open = services.chunk_store.open_chunk

    def flaky_open(chunk):
        if chunk.chunk_index == 1:
            raise FileNotFoundError(chunk.path)
        return original_open(chunk)

    monkeypatch.setattr(services.chunk_store, 'open_chunk', flaky_open)

    with pytest.raises(MergeIOError):
        services.reassembler.merge('a.txt')

    assert services.registry.list_all() == []


def test_concurrent_merges_of_same_name(services):
    """Exactly one of two racing merges wins; the other finds no chunks."""
    for index in range(20):
        services.chunk_store.put('race.bin', index, os.urandom(64 * 1024))

    results = []
    errors = []
    barrier = threading.Barrier(2)

    def worker():
        barrier.wait()
        try:
            results.append(services.reassembler.merge('race.bin'))
        except NoChunksFoundError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 1
    assert len(errors) == 1
    assert results[0].size == 20 * 64 * 1024
    assert len(services.registry.list_all()) == 1


def test_concurrent_merges_of_different_names(services):
    """Merges of different files do not interfere."""
    names = [f'file{n}.bin' for n in range(4)]
    payloads = {name: os.urandom(128 * 1024) for name in names}
    for name, payload in payloads.items():
        services.chunk_store.put(name, 0, payload[:64 * 1024])
        services.chunk_store.put(name, 1, payload[64 * 1024:])

    threads = [
        threading.Thread(target=services.reassembler.merge, args=(name,))
        for name in names
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for name, payload in payloads.items():
        assert services.artifact_store.get_artifact_path(name).read_bytes() == payload
    assert len(services.registry.list_all()) == 4
