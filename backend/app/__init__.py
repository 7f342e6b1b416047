"""
Server Analytics Backend Application Package.

Telemetry ingestion, alt-account detection, performance monitoring and alert
dispatch for a cluster of game servers.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
