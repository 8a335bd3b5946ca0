#!/usr/bin/env python3
"""
Connection Utilities Module
=========================
Provides utility functions for waiting on external service connections.
"""

import logging
import ssl
import time
from typing import Callable, List, Optional

from cassandra.auth import AuthProvider
from cassandra.cluster import Cluster, NoHostAvailable
from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient

logger = logging.getLogger("connection-utils")

def wait_for_kafka(bootstrap_servers: str, retries: int = 30, delay: float = 2) -> bool:
    """
    Wait for Kafka to be ready and accepting connections.

    Args:
        bootstrap_servers: Kafka bootstrap servers string
        retries: Number of connection attempts before giving up
        delay: Delay between retries in seconds

    Returns:
        True if Kafka is ready, False otherwise
    """
    logger.info(f"Waiting for Kafka at {bootstrap_servers}...")

    for attempt in range(retries):
        try:
            # Create a temporary admin client to test the connection
            admin_client = AdminClient({'bootstrap.servers': bootstrap_servers})

            # Request metadata to test connection
            cluster_metadata = admin_client.list_topics(timeout=5)
            if cluster_metadata is not None:
                logger.info(f"Kafka is ready at {bootstrap_servers}")
                return True
        except KafkaException as e:
            logger.warning(f"Kafka not ready (attempt {attempt + 1}/{retries}): {str(e)}")

        time.sleep(delay)

    logger.error(f"Kafka did not become ready after {retries} attempts")
    return False

def wait_for_cassandra(contact_points: List[str], port: int = 9042, retries: int = 30, delay: float = 2,
                       auth_provider: Optional[AuthProvider] = None,
                       ssl_context: Optional[ssl.SSLContext] = None) -> bool:
    """
    Wait for Cassandra to be ready and accepting connections.

    Args:
        contact_points: Cassandra hosts
        port: Native transport port
        retries: Number of connection attempts before giving up
        delay: Delay between retries in seconds
        auth_provider: Credentials, if the cluster requires them
        ssl_context: SSL context, if the cluster only accepts TLS

    Returns:
        True if Cassandra is ready, False otherwise
    """
    logger.info(f"Waiting for Cassandra at {','.join(contact_points)}:{port}...")

    for attempt in range(retries):
        cluster = Cluster(contact_points, port=port, auth_provider=auth_provider, ssl_context=ssl_context)
        try:
            # Open and drop a session to test the connection
            cluster.connect()
            logger.info("Cassandra is ready")
            return True
        except NoHostAvailable as e:
            logger.warning(f"Cassandra not ready (attempt {attempt + 1}/{retries}): {str(e)}")
        finally:
            cluster.shutdown()

        time.sleep(delay)

    logger.error(f"Cassandra did not become ready after {retries} attempts")
    return False

def wait_for_service(
    check_function: Callable[[], bool],
    service_name: str,
    retries: int = 30,
    delay: float = 2
) -> bool:
    """
    Generic function to wait for a service to be ready.

    Args:
        check_function: Function that returns True if service is ready
        service_name: Name of the service (for logging)
        retries: Number of connection attempts before giving up
        delay: Delay between retries in seconds

    Returns:
        True if service is ready, False otherwise
    """
    logger.info(f"Waiting for {service_name}...")

    for attempt in range(retries):
        try:
            if check_function():
                logger.info(f"{service_name} is ready")
                return True
        except Exception as e:
            logger.warning(f"{service_name} not ready (attempt {attempt + 1}/{retries}): {str(e)}")

        time.sleep(delay)

    logger.error(f"{service_name} did not become ready after {retries} attempts")
    return False
