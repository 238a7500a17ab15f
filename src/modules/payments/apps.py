from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"

    def ready(self) -> None:
        from modules.payments.events import PaymentCollected, PaymentVoided
        from modules.payments.handlers import (
            payment_collected_handler,
            payment_voided_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(PaymentCollected, payment_collected_handler)
        event_bus.subscribe(PaymentVoided, payment_voided_handler)
