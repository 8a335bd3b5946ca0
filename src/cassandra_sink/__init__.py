"""
Cassandra sink.
Consumes JSON messages from Kafka and writes them to Cassandra, either through
entity mapping or through a parameterized CQL ingest query.
"""

__version__ = "0.1.0"
