"""Tests for the run loop and single-file workers, driven synchronously."""

from __future__ import annotations

import hashlib

from batchmd5.core.errors import IOReadError
from batchmd5.core.models import FileRecord, SessionState
from batchmd5.core.result_store import ResultStore
from batchmd5.services.hashing import HashingService
from batchmd5.workers.process_worker import ProcessWorker, SingleFileWorker, mutate_and_rehash
from batchmd5.workers.scan_worker import FolderScanWorker
from batchmd5.workers.base_worker import WorkerState

from conftest import FixedBytesMutator


def _make_files(folder, names):
    paths = []
    for name in names:
        path = folder / name
        path.write_bytes(name.encode() * 3)
        paths.append(path)
    return paths


def _store_for(paths):
    hasher = HashingService()
    return ResultStore(FileRecord(path=p, original_digest=hasher.digest_of_file(p)) for p in paths)


def test_processes_every_candidate_in_order(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png", "two.png", "three.png"])
    store = _store_for(paths)
    worker = ProcessWorker(paths, store, byte_count=1, mutator=FixedBytesMutator())
    started = []
    worker.file_started.connect(lambda name, path: started.append(name))

    outcomes = worker.do_work()

    assert started == ["one.png", "two.png", "three.png"]
    assert [o.path for o in outcomes] == paths
    assert all(o.success for o in outcomes)
    for outcome in outcomes:
        original = store.get(outcome.path).original_digest
        assert outcome.modified_digest != original
        assert outcome.modified_digest == hashlib.md5(outcome.path.read_bytes()).hexdigest()


def test_failed_mutation_is_an_unsuccessful_outcome(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png", "two.png"])
    store = _store_for(paths)
    paths[0].unlink()

    outcomes = ProcessWorker(paths, store, mutator=FixedBytesMutator()).do_work()

    assert [o.success for o in outcomes] == [False, True]
    assert outcomes[0].modified_digest is None
    assert outcomes[0].error


def test_zero_byte_count_fails_every_file(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png"])
    outcomes = ProcessWorker(paths, _store_for(paths), byte_count=0).do_work()
    assert [o.success for o in outcomes] == [False]
    assert paths[0].read_bytes() == b"one.png" * 3


def test_candidates_without_record_are_skipped_uncounted(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png", "two.png"])
    store = _store_for(paths[:1])
    processed = []
    worker = ProcessWorker(paths, store, mutator=FixedBytesMutator())
    worker.file_processed.connect(processed.append)

    outcomes = worker.do_work()

    assert [o.path for o in outcomes] == [paths[0]]
    assert len(processed) == 1
    assert paths[1].read_bytes() == b"two.png" * 3


def test_cancel_stops_at_the_next_file_boundary(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png", "two.png", "three.png"])
    store = _store_for(paths)
    worker = ProcessWorker(paths, store, mutator=FixedBytesMutator())
    worker.file_processed.connect(lambda outcome: worker.cancel())

    outcomes = worker.do_work()

    assert len(outcomes) == 1
    assert paths[1].read_bytes() == b"two.png" * 3
    assert paths[2].read_bytes() == b"three.png" * 3


def test_run_emits_cancelled_with_partial_result(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png", "two.png"])
    worker = ProcessWorker(paths, _store_for(paths), mutator=FixedBytesMutator())
    worker.file_processed.connect(lambda outcome: worker.cancel())
    cancelled, finished = [], []
    worker.signals.cancelled.connect(cancelled.append)
    worker.signals.finished.connect(finished.append)

    worker.run()

    assert worker.state == WorkerState.CANCELLED
    assert finished == []
    assert len(cancelled[0]) == 1


class UnreadableAfterFirstRead(HashingService):
    def __init__(self):
        super().__init__()
        self.seen: set[str] = set()

    def digest_of_file(self, path):
        if str(path) in self.seen:
            raise IOReadError(f"Cannot read {path}", path)
        self.seen.add(str(path))
        return super().digest_of_file(path)


def test_mutated_file_that_cannot_be_rehashed_is_a_failure(qapp, tmp_path):
    paths = _make_files(tmp_path, ["one.png"])
    hasher = UnreadableAfterFirstRead()
    hasher.digest_of_file(paths[0])

    outcome = mutate_and_rehash(paths[0], 1, hasher, FixedBytesMutator())

    assert outcome.success is False
    assert outcome.modified_digest is None
    assert "Cannot read" in outcome.error
    assert paths[0].read_bytes() == b"one.png" * 3 + b"\x2a"
    state = SessionState(total_count=1).with_outcome(outcome.success)
    assert (state.processed_count, state.success_count, state.fail_count) == (1, 0, 1)


def test_single_file_worker_rehash_failure_keeps_record_unprocessed(qapp, tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"data")

    record = SingleFileWorker(path, hasher=UnreadableAfterFirstRead(), mutator=FixedBytesMutator()).do_work()

    assert record.original_digest == hashlib.md5(b"data").hexdigest()
    assert record.processed is False
    assert record.modified_digest is None
    assert path.read_bytes() == b"data\x2a"


def test_single_file_worker_returns_processed_record(qapp, tmp_path):
    path = tmp_path / "photo.jpg"
    original = b"0123456789"
    path.write_bytes(original)

    record = SingleFileWorker(path, byte_count=1, mutator=FixedBytesMutator(0x01)).do_work()

    assert record.processed
    assert record.original_digest == hashlib.md5(original).hexdigest()
    assert record.modified_digest == hashlib.md5(original + b"\x01").hexdigest()
    assert path.stat().st_size == 11


def test_single_file_worker_unreadable_file(qapp, tmp_path):
    assert SingleFileWorker(tmp_path / "missing.jpg").do_work() is None


def test_single_file_worker_failed_mutation_keeps_record_unprocessed(qapp, tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"data")

    record = SingleFileWorker(path, byte_count=0).do_work()

    assert not record.processed
    assert record.modified_digest is None


def test_scan_worker_skips_unreadable_files(qapp, image_folder):
    class PickyHasher(HashingService):
        def digest_of_file(self, path):
            if path.name == "b.jpg":
                raise IOReadError("locked", path)
            return super().digest_of_file(path)

    worker = FolderScanWorker(image_folder, hasher=PickyHasher())
    found = []
    worker.record_found.connect(found.append)

    summary = worker.do_work()

    assert sorted(r.name for r in summary.records) == ["a.png", "c.gif"]
    assert [p.name for p in summary.skipped] == ["b.jpg"]
    assert found == summary.records
    assert all(not r.processed for r in summary.records)
