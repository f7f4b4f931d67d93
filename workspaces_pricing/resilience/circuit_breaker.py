"""
Circuit breaker utility for resilience.
Stops calling the pricing catalog for a while after repeated failures so
estimates go straight to fallback prices instead of waiting on timeouts.
"""
from enum import Enum
from datetime import datetime
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


# Circuit breaker configuration constants
FAILURE_THRESHOLD = 3  # Trip breaker after N consecutive failures
OPEN_STATE_DURATION = 60  # Seconds to remain OPEN before transitioning to HALF_OPEN
HALF_OPEN_MAX_REQUESTS = 1  # Max requests allowed in HALF_OPEN state


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing fast, not calling the catalog
    HALF_OPEN = "half_open"  # Testing if the catalog recovered


class CircuitBreaker:
    """
    Circuit breaker protecting calls to an upstream service.

    Transitions:
    - CLOSED -> OPEN: After failure_threshold consecutive failures
    - OPEN -> HALF_OPEN: After open_duration seconds
    - HALF_OPEN -> CLOSED: On successful request
    - HALF_OPEN -> OPEN: On failure during test
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int = FAILURE_THRESHOLD,
        open_duration: int = OPEN_STATE_DURATION,
        half_open_max_requests: int = HALF_OPEN_MAX_REQUESTS
    ):
        """
        Initialize circuit breaker.

        Args:
            service_name: Name of the guarded service (e.g., "pricing_catalog")
            failure_threshold: Number of consecutive failures before opening
            open_duration: Seconds to remain OPEN before HALF_OPEN
            half_open_max_requests: Max requests allowed in HALF_OPEN state
        """
        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.open_duration = open_duration
        self.half_open_max_requests = half_open_max_requests

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[datetime] = None
        self.half_open_requests = 0

    def allow_request(self) -> bool:
        """
        Check if a request should be allowed.

        Returns:
            True if request should proceed, False if circuit is open
        """
        if self.state == CircuitState.OPEN:
            elapsed = (datetime.now() - self.opened_at).total_seconds() if self.opened_at else 0
            if elapsed < self.open_duration:
                return False
            logger.warning(
                "Circuit breaker for %s: OPEN -> HALF_OPEN (testing recovery)",
                self.service_name
            )
            self.state = CircuitState.HALF_OPEN
            self.half_open_requests = 0

        if self.state == CircuitState.HALF_OPEN:
            if self.half_open_requests < self.half_open_max_requests:
                self.half_open_requests += 1
                return True
            return False

        return True

    def record_success(self) -> None:
        """Record a successful request; closes a HALF_OPEN circuit."""
        if self.state == CircuitState.HALF_OPEN:
            logger.warning(
                "Circuit breaker for %s: HALF_OPEN -> CLOSED (service recovered)",
                self.service_name
            )
            self.state = CircuitState.CLOSED
            self.half_open_requests = 0
            self.opened_at = None
        self.failure_count = 0

    def record_failure(self) -> None:
        """Record a failed request; opens the circuit once the threshold is reached."""
        self.failure_count += 1

        if self.state == CircuitState.HALF_OPEN:
            logger.warning(
                "Circuit breaker for %s: HALF_OPEN -> OPEN (service still failing)",
                self.service_name
            )
            self._open()
        elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker for %s: CLOSED -> OPEN (%d consecutive failures)",
                self.service_name,
                self.failure_count
            )
            self._open()

    def reset(self) -> None:
        """Return to CLOSED with no recorded failures."""
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None
        self.half_open_requests = 0

    def current_state(self) -> CircuitState:
        """Get current circuit state."""
        return self.state

    def _open(self) -> None:
        self.state = CircuitState.OPEN
        self.opened_at = datetime.now()
        self.half_open_requests = 0


# Process-wide circuit breakers (one per upstream service)
_circuit_breakers: Dict[str, CircuitBreaker] = {}


def get_circuit_breaker(service_name: str) -> CircuitBreaker:
    """
    Get or create circuit breaker for a service.

    Args:
        service_name: Name of the service

    Returns:
        CircuitBreaker instance for the service
    """
    if service_name not in _circuit_breakers:
        _circuit_breakers[service_name] = CircuitBreaker(service_name)
    return _circuit_breakers[service_name]
