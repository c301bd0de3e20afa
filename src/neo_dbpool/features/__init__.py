"""Feature modules for neo-dbpool.

- pool/: connection pool, circuit breaker, acquisition queue, reaper, health prober
- monitoring/: query metrics, health scoring, analytics and recommendations
"""
