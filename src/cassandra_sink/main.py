#!/usr/bin/env python3
"""
Cassandra Sink
=======================
Main entry point: consumes the input topic and writes to Cassandra
"""

import logging
import signal
import sys

from cassandra_sink.config.settings import settings
from cassandra_sink.services.sink_orchestrator import SinkOrchestrator

# Configure logging
logging.basicConfig(
    level=settings.app.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger: logging.Logger = logging.getLogger("cassandra-sink")


def main() -> bool:
    """Main entry point"""
    logger.info("Starting Cassandra sink")

    orchestrator: SinkOrchestrator = SinkOrchestrator()
    signal.signal(signal.SIGTERM, lambda signum, frame: orchestrator.kafka_service.stop())

    success: bool = orchestrator.run()
    if success:
        logger.info("Sink stopped")
    else:
        logger.error("Sink failed to start")
    return success


def run() -> None:
    """Console script wrapper"""
    try:
        if not main():
            sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Sink interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
