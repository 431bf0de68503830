"""
Unit Tests for the outbound dispatcher
Tests for: delivery, retry with backoff, dropping, consumer lifecycle
"""
import asyncio
import pytest

from app.services.outbox import OutboundDispatcher
from app.services.registry import Outbound, ServiceRegistry


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def dispatcher(sleep):
    return OutboundDispatcher(max_attempts=3, base_delay=2.0, max_delay=5.0, sleep=sleep)


class TestRetryDelay:

    def test_exponential_and_capped(self, dispatcher):
        assert [dispatcher.retry_delay(n) for n in range(4)] == [2.0, 4.0, 5.0, 5.0]


class TestDrain:

    @pytest.mark.asyncio
    async def test_successful_job_runs_once(self, dispatcher, sleep):
        calls = []

        async def handler(value):
            calls.append(value)
            return True

        dispatcher.enqueue("job", handler, 42)
        processed = await dispatcher.drain()

        assert processed == 1
        assert calls == [42]
        assert dispatcher.delivered == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_false_result_is_retried_then_succeeds(self, dispatcher, sleep):
        results = iter([False, True])

        async def handler():
            return next(results)

        dispatcher.enqueue("flaky", handler)
        await dispatcher.drain()

        assert dispatcher.delivered == 1
        assert dispatcher.dropped == 0
        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_exception_is_retried_until_dropped(self, dispatcher, sleep):
        attempts = []

        async def handler():
            attempts.append(1)
            raise ConnectionError("smtp down")

        job = dispatcher.enqueue("broken", handler)
        await dispatcher.drain()

        assert len(attempts) == 3
        assert job.attempts == 3
        assert dispatcher.dropped == 1
        # no sleep after the final attempt
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_failing_job_does_not_hold_up_the_queue(self, dispatcher, sleep):
        order = []

        async def email():
            order.append("email")
            raise ConnectionError("smtp down")

        async def broadcast():
            order.append("broadcast")
            return True

        dispatcher.enqueue("email", email)
        dispatcher.enqueue("broadcast", broadcast)
        await dispatcher.drain()

        assert order == ["email", "broadcast", "email", "email"]
        assert dispatcher.delivered == 1
        assert dispatcher.dropped == 1
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_none_result_counts_as_delivered(self, dispatcher):
        async def handler():
            return None

        dispatcher.enqueue("quiet", handler)
        await dispatcher.drain()

        assert dispatcher.delivered == 1


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_consumer_runs_jobs_and_stop_drains(self, dispatcher):
        done = asyncio.Event()
        calls = []

        async def handler(name):
            calls.append(name)
            if name == "first":
                done.set()
            return True

        await dispatcher.start()
        assert dispatcher.is_running

        dispatcher.enqueue("a", handler, "first")
        await asyncio.wait_for(done.wait(), timeout=1)

        await dispatcher.stop()
        dispatcher.enqueue("b", handler, "second")
        await dispatcher.drain()

        assert not dispatcher.is_running
        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_consumer_delivers_while_a_retry_waits(self):
        dispatcher = OutboundDispatcher(max_attempts=2, base_delay=0.5, max_delay=0.5)
        delivered = asyncio.Event()

        async def email():
            raise ConnectionError("smtp down")

        async def broadcast():
            delivered.set()
            return True

        await dispatcher.start()
        dispatcher.enqueue("email", email)
        dispatcher.enqueue("broadcast", broadcast)

        # well inside the email's retry delay
        await asyncio.wait_for(delivered.wait(), timeout=0.25)
        assert dispatcher.pending == 1

        await dispatcher.stop()
        assert dispatcher.dropped == 1
        assert dispatcher.pending == 0


class TestOutbound:

    @pytest.mark.asyncio
    async def test_email_skipped_when_smtp_not_configured(self):
        services = ServiceRegistry()
        services.email.smtp_user = ""

        queued = Outbound(services).email("send_approval", "s@unitrack.edu", "S", "REG1")

        assert queued is False
        assert services.dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_email_queued_when_configured(self, monkeypatch):
        services = ServiceRegistry()
        services.email.smtp_user = "mailer"
        services.email.smtp_password = "secret"
        sent = []

        async def fake_send(to_email, full_name, registration_id):
            sent.append((to_email, registration_id))
            return True

        monkeypatch.setattr(services.email, "send_approval", fake_send)

        queued = Outbound(services).email("send_approval", "s@unitrack.edu", "S", "REG1")
        await services.dispatcher.drain()

        assert queued is True
        assert sent == [("s@unitrack.edu", "REG1")]
