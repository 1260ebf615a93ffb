"""
Management command to declare the pipeline's exchanges and queues.

Usage:
    python manage.py setup_broker
    python manage.py setup_broker --retry-delay-ms 30000
"""

from django.core.management.base import BaseCommand, CommandError

from apps.orchestration.broker import Topology, get_connection


class Command(BaseCommand):
    help = "Declare order.events exchanges, stage queues and the enrichment retry queue."

    def add_arguments(self, parser):
        parser.add_argument(
            "--retry-delay-ms",
            type=int,
            help="Enrichment retry backoff in milliseconds (default from settings)",
        )

    def handle(self, *args, **options):
        topology = Topology.build(retry_delay_ms=options.get("retry_delay_ms"))

        try:
            with get_connection() as connection:
                topology.declare(connection)
        except Exception as e:
            raise CommandError(f"Failed to set up broker: {e}") from e

        for queue in topology.all():
            self.stdout.write(
                f"  {queue.name:<36} exchange={queue.exchange.name:<20} "
                f"routing_key={queue.routing_key}"
            )
        self.stdout.write(self.style.SUCCESS("Broker topology declared."))
