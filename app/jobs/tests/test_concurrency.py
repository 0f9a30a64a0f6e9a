"""
Row-lock contention tests for the escrow transitions.

These need real transactions on separate connections, and SQLite's
SELECT ... FOR UPDATE is a no-op, so they only run against PostgreSQL.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connection

from jobs.exceptions import AlreadyHiredError
from jobs.models import JobApplication
from jobs.services import ApplicationRepository, EscrowStateMachine
from jobs.states import ApplicationStatus
from jobs.tests.factories import JobApplicationFactory, OpportunityFactory

pytestmark = [
    pytest.mark.skipif(connection.vendor != "postgresql", reason="needs PostgreSQL row locks"),
    # Keep the seeded notification types for the tests that run afterwards
    pytest.mark.django_db(transaction=True, serialized_rollback=True),
]


def run_concurrently(func, *args, workers=2):
    """Run func in `workers` threads released together. Returns results or raised errors."""
    barrier = threading.Barrier(workers)

    def call():
        barrier.wait()
        try:
            return func(*args)
        except Exception as e:
            return e
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(call) for _ in range(workers)]
        return [future.result() for future in futures]


@pytest.fixture
def slow_lock(mocker):
    """Hold the application row lock long enough for the other thread to queue on it."""
    lock_application = ApplicationRepository.lock_application

    def _lock(*args, **kwargs):
        application = lock_application(*args, **kwargs)
        time.sleep(0.3)
        return application

    return mocker.patch.object(ApplicationRepository, "lock_application", side_effect=_lock)


class TestConcurrentHire:
    def test_second_hire_waits_and_sees_hired(self, poster, applicant, ready_accounts, slow_lock):
        opportunity = OpportunityFactory(poster=poster, amount=10000)
        application = JobApplicationFactory(opportunity=opportunity, applicant=applicant)

        results = run_concurrently(
            lambda: EscrowStateMachine().hire(application.pk, poster).application
        )

        hired = [r for r in results if isinstance(r, JobApplication)]
        refused = [r for r in results if isinstance(r, AlreadyHiredError)]
        assert len(hired) == 1
        assert len(refused) == 1
        assert refused[0].details["status"] == ApplicationStatus.HIRED

        stored = JobApplication.objects.get(pk=application.pk)
        assert stored.status == ApplicationStatus.HIRED
        assert stored.deposit_amount == 2500
        # One save only: the losing thread wrote nothing
        assert stored.version == application.version + 1
        assert slow_lock.call_count == 2
