"""
Configuration package for the Cassandra sink.
"""

from cassandra_sink.config.settings import settings

__all__ = ['settings']
