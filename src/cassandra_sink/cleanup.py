"""
cleanup.py
Description: Utility to reset the sink's Kafka topics and Cassandra tables.
This script can recreate the input topic and truncate entity tables.

Usage:
- Run directly: python -m cassandra_sink.cleanup [--topics] [--tables] [--all] [--table NAME ...]
"""

import argparse
import logging
import time
from typing import List, Optional, Sequence

from confluent_kafka.admin import AdminClient, NewTopic

from cassandra_sink.factories import EntityFactory
from cassandra_sink.services.cassandra_service import CassandraService
from cassandra_sink.services.config_service import ConfigService

logger = logging.getLogger(__name__)

def truncate_tables(cassandra_service: CassandraService, tables: Sequence[str]) -> List[str]:
    """Truncate the given tables, returning the ones that were truncated"""
    logger.info("Truncating Cassandra tables...")
    truncated: List[str] = []
    for table in tables:
        try:
            cassandra_service.truncate(table)
            truncated.append(table)
        except Exception as e:
            logger.warning(f"Failed to truncate table {table}: {e}")

    logger.info("Table truncation completed")
    return truncated

def clear_topics(admin_client: AdminClient, topics: Sequence[str],
                 partitions: int = 1, replicas: int = 1) -> None:
    """Delete and recreate Kafka topics"""
    logger.info("Cleaning up Kafka topics...")

    # Delete topics
    logger.info(f"Deleting topics: {', '.join(topics)}")
    for topic, future in admin_client.delete_topics(list(topics)).items():
        try:
            future.result()
            logger.info(f"Deleted topic {topic}")
        except Exception as e:
            logger.warning(f"Failed to delete topic {topic}: {e}")

    # Wait for topic deletion to propagate
    logger.info("Waiting for topic deletion to propagate...")
    time.sleep(5)

    # Recreate topics
    new_topics = [NewTopic(topic, num_partitions=partitions, replication_factor=replicas) for topic in topics]
    logger.info(f"Creating topics: {', '.join(topics)}")
    for topic, future in admin_client.create_topics(new_topics).items():
        try:
            future.result()
            logger.info(f"Created topic {topic}")
        except Exception as e:
            logger.warning(f"Failed to create topic {topic}: {e}")

    logger.info("Topic cleanup completed")

def cleanup(clear_topics_flag: bool = False, truncate_tables_flag: bool = False,
            tables: Optional[Sequence[str]] = None,
            config_service: Optional[ConfigService] = None) -> None:
    """Clean up Kafka topics and/or Cassandra tables"""
    config_service = config_service or ConfigService()

    if clear_topics_flag:
        kafka_config = config_service.get_kafka_config()
        topics = [kafka_config['topic']]
        if config_service.get_sink_config().dead_letter_enabled:
            topics.append(config_service.get_dead_letter_topic())
        clear_topics(AdminClient({'bootstrap.servers': kafka_config['bootstrap_servers']}), topics)

    if truncate_tables_flag:
        cassandra_service = CassandraService(config_service)
        cassandra_service.connect(bootstrap=False)
        try:
            truncate_tables(cassandra_service,
                            tables or [entity_class.table_name for entity_class in EntityFactory.all()])
        finally:
            cassandra_service.close()

    logger.info("Cleanup completed")

def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    parser = argparse.ArgumentParser(description="Reset the sink's Kafka topics and Cassandra tables")
    parser.add_argument("--topics", action="store_true", help="Recreate the input topic")
    parser.add_argument("--tables", action="store_true", help="Truncate entity tables")
    parser.add_argument("--all", action="store_true", help="Clean up everything")
    parser.add_argument("--table", action="append", dest="table_names", help="Table to truncate (repeatable)")
    args = parser.parse_args(argv)

    # If no specific flags are provided, show help
    if not (args.topics or args.tables or args.all):
        parser.print_help()
    else:
        cleanup(
            clear_topics_flag=args.topics or args.all,
            truncate_tables_flag=args.tables or args.all,
            tables=args.table_names
        )

if __name__ == "__main__":
    main()
