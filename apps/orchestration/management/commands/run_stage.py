"""
Management command to run one pipeline stage worker.

Usage:
    # Consume order.created and mark orders as processing
    python manage.py run_stage processing

    # Enrichment worker (retries through the dead-letter delay queue)
    python manage.py run_stage enrichment

    # Finalization worker
    python manage.py run_stage finalization

Run several processes of the same stage to scale it out; the broker spreads
deliveries across them. SIGINT/SIGTERM stop the worker after the delivery in
flight has been settled.
"""

import signal
import threading

from django.core.management.base import BaseCommand, CommandError

from apps.orchestration.broker import EventPublisher, Topology, get_connection
from apps.orchestration.handlers import get_stage_handler_class, list_stages
from apps.orchestration.runner import PipelineRunner
from apps.orchestration.signals import PipelineMonitor


class Command(BaseCommand):
    help = "Run a pipeline stage worker: processing, enrichment or finalization."

    def add_arguments(self, parser):
        parser.add_argument(
            "stage",
            type=str,
            help=f"Stage to run ({', '.join(list_stages())})",
        )
        parser.add_argument(
            "--broker-url",
            type=str,
            help="Override the broker URL from settings",
        )

    def handle(self, *args, **options):
        stage = options["stage"]
        try:
            handler_cls = get_stage_handler_class(stage)
        except KeyError as e:
            raise CommandError(str(e.args[0])) from e

        topology = Topology.build()
        connection = get_connection(options.get("broker_url"))
        topology.declare(connection)

        monitor = PipelineMonitor()
        handler = handler_cls.from_settings(
            publisher=EventPublisher(connection, topology),
            topology=topology,
            monitor=monitor,
        )
        runner = PipelineRunner(
            connection=connection,
            queue=topology.queue_for(handler_cls.consumes),
            handler=handler,
            monitor=monitor,
        )

        stop_requested = threading.Event()

        def _request_stop(signum, frame):
            stop_requested.set()

        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)

        self.stdout.write(self.style.SUCCESS(f"Starting {stage} worker on {runner.queue.name}"))
        runner.start()
        stop_requested.wait()

        runner.stop()
        connection.release()
        self.stdout.write(self.style.SUCCESS(f"{stage} worker stopped"))
