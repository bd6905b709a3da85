#!/usr/bin/env python3
"""Generate a sample brokerage book and export it.

Creates properties, clients and transactions through the service facade
(backed by in-memory gateways), walks some transactions along their
lifecycle, and writes entity snapshots plus the change-event log through
``JsonFileSink``. With ``--kafka-bootstrap`` the change feed is also
published to Kafka.
"""

import argparse
import logging
import random
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from brokerage.config import BrokerageConfig
from brokerage.engine.lifecycle import TRANSACTION_TRANSITIONS, is_terminal
from brokerage.exceptions import BrokerageError
from brokerage.generators import ClientGenerator, PropertyGenerator, TransactionGenerator
from brokerage.logging import setup_logging
from brokerage.models import TransactionStatus
from brokerage.service import BrokerageService
from brokerage.sinks import JsonFileSink, KafkaSink

logger = logging.getLogger("brokerage.scripts.sample_data")

# Forward path through the happy-path lifecycle
HAPPY_PATH = [
    TransactionStatus.UNDER_CONTRACT,
    TransactionStatus.INSPECTION,
    TransactionStatus.APPRAISAL,
    TransactionStatus.FINANCING,
    TransactionStatus.FINAL_WALKTHROUGH,
    TransactionStatus.CLOSING,
    TransactionStatus.CLOSED,
]


class FanOutSink:
    """Publish each event to several sinks."""

    def __init__(self, *sinks) -> None:
        self.sinks = sinks

    def publish(self, event) -> None:
        for sink in self.sinks:
            sink.publish(event)


def advance(service: BrokerageService, transaction_id: str, steps: int) -> None:
    """Move a transaction ``steps`` statuses along the happy path."""
    for status in HAPPY_PATH[:steps]:
        current = service.transactions.get(transaction_id).status
        if status not in TRANSACTION_TRANSITIONS[current]:
            break
        service.update_transaction_status(transaction_id, status)


def build_book(
    service: BrokerageService,
    num_properties: int,
    num_clients: int,
    num_transactions: int,
    seed: int,
) -> None:
    """Populate the service with generated entities."""
    agent_ids = [f"agent-{i}" for i in range(1, 4)]
    property_gen = PropertyGenerator(seed=seed, agent_ids=agent_ids)
    client_gen = ClientGenerator(seed=seed, agent_ids=agent_ids)
    transaction_gen = TransactionGenerator(seed=seed)

    print("\n1. Generating properties...")
    properties = [service.create_property(p) for p in property_gen.generate_batch(num_properties)]

    print("2. Generating clients...")
    clients = [service.create_client(c) for c in client_gen.generate_batch(num_clients)]

    print("3. Generating transactions...")
    for _ in range(num_transactions):
        prop = random.choice(properties)
        client = random.choice(clients)
        payload = transaction_gen.generate(
            property_id=prop.property_id,
            client_id=client.client_id,
            agent_id=prop.agent_id,
        )
        transaction = service.create_transaction(payload)
        for spec in transaction_gen.milestones(transaction.created_at + timedelta(days=1)):
            transaction = service.add_milestone(transaction.transaction_id, spec)

        completed = random.randint(0, len(transaction.milestones))
        for milestone in transaction.milestones[:completed]:
            service.complete_milestone(transaction.transaction_id, milestone.milestone_id)

        advance(service, transaction.transaction_id, random.randint(0, len(HAPPY_PATH)))
        current = service.transactions.get(transaction.transaction_id).status
        if not is_terminal(current) and random.random() < 0.1:
            service.update_transaction_status(
                transaction.transaction_id, TransactionStatus.CANCELLED
            )


def print_summary(service: BrokerageService, output_dir: Path) -> None:
    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    for name, store in (
        ("Properties", service.properties),
        ("Clients", service.clients),
        ("Transactions", service.transactions),
    ):
        stats = store.stats()
        print(f"{name + ':':15}{stats.total:5d}  by status {stats.by_status}")

    analytics = service.get_analytics()
    print(f"\nTotal volume:      {analytics.total_volume}")
    print(f"Commission earned: {analytics.commission_earned}")
    print(f"Upcoming deadlines: {len(service.get_upcoming_deadlines())}")
    print(f"\nAll files saved to: {output_dir}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a sample brokerage book")
    parser.add_argument("--properties", type=int, default=20, help="Number of properties (default: 20)")
    parser.add_argument("--clients", type=int, default=15, help="Number of clients (default: 15)")
    parser.add_argument(
        "--transactions", type=int, default=10, help="Number of transactions (default: 10)"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--output-dir", type=Path, default=None, help="Output directory")
    parser.add_argument(
        "--kafka-bootstrap",
        type=str,
        default=None,
        help="Kafka bootstrap servers; publishes the change feed when set",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Log level")
    args = parser.parse_args()

    config = BrokerageConfig.from_env()
    setup_logging(args.log_level or config.log_level)
    output_dir = args.output_dir or config.output.json_output_dir

    json_sink = JsonFileSink(output_dir, pretty=config.output.pretty_json)
    sinks = [json_sink]
    if args.kafka_bootstrap:
        config.kafka.bootstrap_servers = args.kafka_bootstrap
        sinks.append(KafkaSink(config.kafka))

    service = BrokerageService.in_memory(config=config.engine, sink=FanOutSink(*sinks))

    print("=" * 60)
    print("Generating Sample Brokerage Data")
    print("=" * 60)

    try:
        build_book(service, args.properties, args.clients, args.transactions, args.seed)
    except BrokerageError:
        logger.exception("Sample data generation failed")
        return 1
    finally:
        json_sink.write_batch("properties", service.properties.entities)
        json_sink.write_batch("clients", service.clients.entities)
        json_sink.write_batch("transactions", service.transactions.entities)
        for sink in sinks:
            sink.close()

    print_summary(service, output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
