from __future__ import annotations

import time

from django.core.management.base import BaseCommand, CommandError

from modules.delivery.constants import HOME_RECENT_ORDERS, MyOrdersView
from modules.delivery.gateways import HttpDeliveryGateway
from modules.delivery.polling import OrderPoller
from modules.delivery.reports import driver_stats
from modules.delivery.resolvers import ReferenceResolver
from modules.delivery.store import OrderStore, utc_now
from modules.delivery.workflow import DeliveryWorkflow


class Command(BaseCommand):
    help = "Print a driver's delivery board, optionally refreshing it."

    def add_arguments(self, parser):
        parser.add_argument("--driver", required=True, help="Driver display name.")
        parser.add_argument(
            "--view",
            choices=[view.value for view in MyOrdersView],
            default=MyOrdersView.ALL.value,
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help=f"Rows to show (the home screen shows {HOME_RECENT_ORDERS}).",
        )
        parser.add_argument(
            "--source",
            choices=["api", "local"],
            default="api",
            help="Read through the REST API or the in-process services.",
        )
        parser.add_argument(
            "--watch",
            action="store_true",
            help="Keep polling and reprint after every refresh (Ctrl-C to stop).",
        )

    def handle(self, *args, **options):
        if options["source"] == "local":
            from modules.delivery.gateways.service_gateway import (
                ServiceDeliveryGateway,
            )

            gateway = ServiceDeliveryGateway(actor=options["driver"])
        else:
            gateway = HttpDeliveryGateway.from_settings()

        store = OrderStore(gateway)
        resolver = ReferenceResolver()
        resolver.refresh(gateway)
        workflow = DeliveryWorkflow(store, options["driver"], resolver=resolver)

        if not options["watch"]:
            if not store.fetch_orders():
                raise CommandError(f"Could not load orders: {store.error}")
            self._render(workflow, options)
            return

        poller = OrderPoller.from_settings(store)
        unsubscribe = store.subscribe(lambda _store: self._render(workflow, options))
        try:
            with poller:
                while True:
                    time.sleep(1)
        except KeyboardInterrupt:
            self.stdout.write("Stopped.")
        finally:
            unsubscribe()
            workflow.close()

    def _render(self, workflow: DeliveryWorkflow, options) -> None:
        store = workflow.store
        if store.error:
            self.stdout.write(self.style.WARNING(f"Backend unreachable: {store.error}"))

        stats = driver_stats(store.get_orders(), workflow.driver, utc_now())
        self.stdout.write(
            self.style.SUCCESS(
                f"{workflow.driver}: completed today={stats.completed_today}, "
                f"pending={stats.pending_deliveries}, "
                f"earnings today={stats.todays_earnings}"
            )
        )
        cards = workflow.my_orders(options["view"], limit=options["limit"])
        if not cards:
            self.stdout.write("No orders.")
            return
        for card in cards:
            elapsed = "" if card.elapsed_minutes is None else f" {card.elapsed_minutes}m"
            actions = ", ".join(action.value for action in card.actions) or "-"
            self.stdout.write(
                f"#{card.order_id:<6} {card.bucket.value:<24} "
                f"{card.customer_name:<24} {card.order.total:>9} "
                f"{card.delivery_status_label}{elapsed} [{actions}]"
            )
