"""Signals for automatic Order status history tracking."""

from __future__ import annotations

from typing import Optional, Protocol, cast

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from modules.orders.models import Order, OrderStatusHistory


class _OrderStatusAware(Protocol):
    _previous_status: tuple[str, str] | None
    _status_change_notes: str | None
    _status_changed_by: str | None


@receiver(pre_save, sender=Order)
def _capture_previous_status(sender, instance: Order, **kwargs) -> None:
    status_instance = cast(_OrderStatusAware, instance)
    if instance._state.adding:
        status_instance._previous_status = None
        return
    status_instance._previous_status = (
        sender.objects.filter(pk=instance.pk)
        .values_list("status", "delivery_status")
        .first()
    )


@receiver(post_save, sender=Order)
def _create_status_history(sender, instance: Order, created: bool, **kwargs) -> None:
    status_instance = cast(_OrderStatusAware, instance)
    previous: Optional[tuple[str, str]] = getattr(
        status_instance, "_previous_status", None
    )
    old_status, old_delivery_status = previous if previous else (None, "")

    changed = (
        created
        or old_status != instance.status
        or old_delivery_status != instance.delivery_status
    )
    if not changed:
        _clear_transient_status_attrs(instance)
        return

    notes = getattr(status_instance, "_status_change_notes", None)
    if created and notes is None:
        notes = "Order created"

    OrderStatusHistory.objects.create(
        order=instance,
        old_status=old_status,
        new_status=instance.status,
        old_delivery_status=old_delivery_status or "",
        new_delivery_status=instance.delivery_status or "",
        changed_by=getattr(status_instance, "_status_changed_by", None) or "",
        notes=notes or "",
    )

    _clear_transient_status_attrs(instance)


def _clear_transient_status_attrs(instance: Order) -> None:
    for attr in ("_previous_status", "_status_change_notes", "_status_changed_by"):
        if hasattr(instance, attr):
            delattr(instance, attr)
