# dijkstra_viz/core/errors.py
#!/usr/bin/env python3


class ConfigurationError(ValueError):
    """Grid or map description that cannot be searched (bad bounds, endpoint on a wall...)."""


class ConcurrentRunRejected(RuntimeError):
    """start() was called while another run is still Running, Paused or replaying its path."""
