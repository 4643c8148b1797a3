"""API Resilience Implementations.

Contains the RetryCoordinator, which retries upstream calls with a fixed
backoff and coordinates credential invalidation on authorization failures.
Bounded Context: API Resilience
"""
