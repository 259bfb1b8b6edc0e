"""
Monitoring infrastructure.
"""

from convoyeur.infrastructure.monitoring.system_reporter import SystemReporter

__all__ = ["SystemReporter"]
