"""
Rate limiting package for the Gateway.

Holds the in-memory cooldown limiter and the pipeline stage that enforces
one admitted request per client within the cooldown window.
"""
