"""
Integration Tests for Concurrent Attempts.

Several threads record attempts through one coordinator against the same
SQLite file. Every attempt must land exactly once: no lost updates on a
shared record and no duplicate records from racing first attempts.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from memorio.db.database import session_scope
from memorio.db.queries import list_records
from memorio.learning import MasteryCoordinator

pytestmark = pytest.mark.slow

USER = "user-1"
THREADS = 4
ATTEMPTS_PER_THREAD = 5


@pytest.fixture
def patient_coordinator(session_factory, settings, clock):
    """Coordinator with enough retries to absorb heavy contention."""
    return MasteryCoordinator(
        session_factory, settings.model_copy(update={"mastery_max_retries": 50}), clock
    )


def _run_in_threads(target, args_per_thread):
    with ThreadPoolExecutor(max_workers=len(args_per_thread)) as pool:
        futures = [pool.submit(target, *args) for args in args_per_thread]
        return [future.result() for future in futures]


class TestConcurrentAttempts:
    """Tests for serialization of racing attempts."""

    def test_same_record_no_lost_updates(self, patient_coordinator, session_factory):
        def worker():
            for _ in range(ATTEMPTS_PER_THREAD):
                patient_coordinator.record_attempt(USER, "NAMES_FACES", "face-1", True, 7)

        _run_in_threads(worker, [() for _ in range(THREADS)])

        record = patient_coordinator.get_skill_mastery(USER, "NAMES_FACES", "face-1")
        history = patient_coordinator.get_record_history(record.id)
        expected = THREADS * ATTEMPTS_PER_THREAD

        assert record.total_attempts == expected
        assert record.correct_attempts == expected
        assert len(history) == expected

        with session_scope(session_factory) as session:
            assert len(list_records(session, USER)) == 1

    def test_ledger_forms_a_chain(self, patient_coordinator):
        """Every transition starts from the previous one's result."""

        def worker(correct):
            for _ in range(ATTEMPTS_PER_THREAD):
                patient_coordinator.record_attempt(USER, "WORD_LINKING", None, correct, 5)

        _run_in_threads(worker, [(i % 2 == 0,) for i in range(THREADS)])

        # Writers serialize, so ledger ids follow commit order
        history = sorted(patient_coordinator.get_attempt_history(USER), key=lambda e: e.id)
        record = patient_coordinator.get_skill_mastery(USER, "WORD_LINKING")

        assert history[0].probability_known_before == pytest.approx(0.3)
        for previous, entry in zip(history, history[1:]):
            assert entry.probability_known_before == pytest.approx(previous.probability_known_after)
        assert history[-1].probability_known_after == pytest.approx(record.probability_known)
        assert record.total_attempts == THREADS * ATTEMPTS_PER_THREAD

    def test_racing_first_attempts_create_one_record(self, patient_coordinator, session_factory):
        def worker():
            patient_coordinator.record_attempt(USER, "QUIZ", "q1", True, 4)

        _run_in_threads(worker, [() for _ in range(THREADS)])

        with session_scope(session_factory) as session:
            records = list_records(session, USER)

        assert len(records) == 1
        assert records[0].total_attempts == THREADS

    def test_different_records_are_independent(self, patient_coordinator):
        def worker(concept):
            for _ in range(ATTEMPTS_PER_THREAD):
                patient_coordinator.record_attempt(USER, "NUMBER_PEG", concept, False, 2)

        concepts = [f"peg-{i}" for i in range(THREADS)]
        _run_in_threads(worker, [(c,) for c in concepts])

        for concept in concepts:
            record = patient_coordinator.get_skill_mastery(USER, "NUMBER_PEG", concept)
            assert record.total_attempts == ATTEMPTS_PER_THREAD
            assert record.correct_attempts == 0
