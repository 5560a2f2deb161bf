from prometheus_client import Counter, Gauge, Histogram


class RsvpMetrics:
    """
    RSVP Service Core Metrics Collector

    Tracks join/cancel outcomes, slot ledger writes, countdown ticks and
    broadcast fan-out.
    """

    def __init__(self):
        # ========== RSVP Business Metrics ==========
        self.rsvp_requests = Counter(
            'rsvp_requests_total',
            'Total RSVP operations',
            ['operation', 'result'],  # operation: join/cancel/resize/feedback
        )

        self.rsvp_duration = Histogram(
            'rsvp_duration_seconds',
            'RSVP operation processing time (lock to commit)',
            ['operation'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0],
        )

        self.available_slots = Gauge(
            'event_available_slots', 'Available slots per event', ['event_id']
        )

        # ========== Countdown Metrics ==========
        self.countdown_ticks = Counter(
            'countdown_ticks_total',
            'Countdown tick outcomes',
            ['outcome'],  # published/completed/event_missing/invalid_duration/read_failed
        )

        self.countdown_tasks_active = Gauge(
            'countdown_tasks_active', 'Running per-event countdown tasks'
        )

        # ========== Broadcast Metrics ==========
        self.broadcast_messages = Counter(
            'broadcast_messages_total',
            'Messages handed to subscriber streams',
            ['topic_kind', 'result'],  # result: delivered/dropped
        )

        self.broadcast_stale_dropped = Counter(
            'broadcast_stale_capacity_dropped_total',
            'Capacity notifications dropped because a newer slot_version was already published',
        )

    # ========== Helper Methods ==========

    def record_rsvp(self, *, operation: str, result: str, duration: float) -> None:
        self.rsvp_requests.labels(operation=operation, result=result).inc()
        self.rsvp_duration.labels(operation=operation).observe(duration)

    def update_available_slots(self, *, event_id: int, available_slots: int) -> None:
        self.available_slots.labels(event_id=event_id).set(available_slots)

    def record_tick(self, *, outcome: str) -> None:
        self.countdown_ticks.labels(outcome=outcome).inc()

    def record_broadcast(self, *, topic: str, delivered: int, dropped: int) -> None:
        topic_kind = 'event' if topic.startswith('event:') else 'global'
        if delivered:
            self.broadcast_messages.labels(topic_kind=topic_kind, result='delivered').inc(delivered)
        if dropped:
            self.broadcast_messages.labels(topic_kind=topic_kind, result='dropped').inc(dropped)


# Global metrics instance
metrics = RsvpMetrics()
