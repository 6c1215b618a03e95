from prometheus_client import Counter, Gauge, Histogram


class BookingMetrics:
    """
    Booking core metrics collector

    Tracks reservation outcomes per concert, inventory movement, write
    conflicts and the health of the ticket issuance pipeline.
    """

    def __init__(self) -> None:
        # ========== Reservation Metrics ==========
        self.booking_requests = Counter(
            'booking_requests_total',
            'Booking requests by outcome',
            # result: 'booked', or the error class name (InsufficientInventoryError, ...)
            ['concert_id', 'result'],
        )

        self.booking_duration = Histogram(
            'booking_duration_seconds',
            'Reservation processing time (validation + ledger + upsert)',
            ['concert_id'],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        )

        self.booking_write_conflicts = Counter(
            'booking_write_conflicts_total',
            'Lost compare-and-swap races on booking rows (retried)',
            ['operation'],  # book/cancel
        )

        # ========== Inventory Metrics ==========
        self.tickets_reserved = Counter(
            'tickets_reserved_total', 'Tickets debited from inventory', ['concert_id']
        )

        self.tickets_released = Counter(
            'tickets_released_total', 'Tickets credited back on cancellation', ['concert_id']
        )

        self.tickets_available = Gauge(
            'tickets_available', 'Last observed available tickets', ['concert_id']
        )

        # ========== Issuance Metrics ==========
        self.ticket_issuance = Counter(
            'ticket_issuance_total',
            'Ticket issuance outcomes',
            ['status'],  # delivered/render_failed/delivery_failed/skipped
        )

        self.ticket_issuance_duration = Histogram(
            'ticket_issuance_duration_seconds',
            'Render + delivery time',
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
        )

    # ========== Helper Methods ==========

    def record_booking(self, *, concert_id: int, result: str, duration: float) -> None:
        self.booking_requests.labels(concert_id=concert_id, result=result).inc()
        self.booking_duration.labels(concert_id=concert_id).observe(duration)

    def record_write_conflict(self, *, operation: str) -> None:
        self.booking_write_conflicts.labels(operation=operation).inc()

    def record_reserved(self, *, concert_id: int, quantity: int, available: int) -> None:
        self.tickets_reserved.labels(concert_id=concert_id).inc(quantity)
        self.tickets_available.labels(concert_id=concert_id).set(available)

    def record_released(self, *, concert_id: int, quantity: int, available: int) -> None:
        self.tickets_released.labels(concert_id=concert_id).inc(quantity)
        self.tickets_available.labels(concert_id=concert_id).set(available)

    def record_issuance(self, *, status: str, duration: float) -> None:
        self.ticket_issuance.labels(status=status).inc()
        self.ticket_issuance_duration.observe(duration)


# Global metrics instance
metrics = BookingMetrics()
