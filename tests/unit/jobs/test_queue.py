"""Unit tests for jobs.queue module."""

from notemark.jobs.queue import InMemoryJobQueue, InMemoryMessage, QueueMessage


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestInMemoryJobQueue:
    """Test cases for InMemoryJobQueue."""

    def test_delivers_in_order_and_counts_attempts(self):
        queue = InMemoryJobQueue()
        queue.enqueue({"n": 1}, "a")
        queue.enqueue({"n": 2}, "b")

        batch = queue.receive_batch(10)

        assert [m.id for m in batch] == ["a", "b"]
        assert all(m.attempts == 1 for m in batch)
        assert queue.in_flight_count == 2
        assert isinstance(batch[0], QueueMessage)

    def test_batch_size_is_respected(self):
        queue = InMemoryJobQueue()
        for i in range(3):
            queue.enqueue(i)
        assert len(queue.receive_batch(2)) == 2
        assert queue.pending_count == 1

    def test_ack_removes_message(self):
        queue = InMemoryJobQueue()
        queue.enqueue("body", "a")
        message = queue.receive_batch()[0]
        message.ack()

        assert queue.is_empty()
        assert queue.acked == ["a"]

    def test_retry_waits_for_delay(self):
        clock = FakeClock()
        queue = InMemoryJobQueue(clock=clock)
        queue.enqueue("body", "a")
        queue.receive_batch()[0].retry(delay_seconds=2.0)

        assert queue.receive_batch() == []
        assert queue.seconds_until_ready() == 2.0

        clock.now += 2.0
        redelivered = queue.receive_batch()
        assert [(m.id, m.attempts) for m in redelivered] == [("a", 2)]

    def test_settling_twice_is_ignored(self):
        """A late ack cannot undo a retry."""
        queue = InMemoryJobQueue()
        queue.enqueue("body", "a")
        message = queue.receive_batch()[0]
        message.retry(0)
        message.ack()

        assert message.settled == "retried"
        assert queue.acked == []
        assert queue.pending_count == 1

    def test_max_deliveries_dead_letters(self):
        queue = InMemoryJobQueue(max_deliveries=2)
        queue.enqueue("body", "a")
        queue.receive_batch()[0].retry(0)
        second = queue.receive_batch()[0]
        second.retry(0)

        assert queue.is_empty()
        assert [m.id for m in queue.dead_letters] == ["a"]
        assert isinstance(queue.dead_letters[0], InMemoryMessage)

    def test_generated_ids_are_unique(self):
        queue = InMemoryJobQueue()
        assert queue.enqueue("x") != queue.enqueue("y")

    def test_seconds_until_ready_when_empty(self):
        assert InMemoryJobQueue().seconds_until_ready() is None
