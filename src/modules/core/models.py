"""Abstract models the delivery modules build on.

Customers and products are addressed on the wire as ``Customer #7`` or
``Product #12``, so primary keys are plain auto-increment integers.
Rows that drivers may still reference (orders, customers, products) are
retired with ``deleted_at`` rather than removed.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class BaseModel(models.Model):
    id = models.BigAutoField(primary_key=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now is skipped for partial saves unless named explicitly.
        fields = kwargs.get("update_fields")
        if fields is not None and "updated_at" not in fields:
            kwargs["update_fields"] = [*fields, "updated_at"]
        super().save(*args, **kwargs)


class SoftDeleteQuerySet(models.QuerySet):
    """``objects`` is unfiltered; callers pick ``alive()`` or ``dead()``."""

    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)

    def dead(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=False)

    def delete(self) -> tuple[int, dict[str, int]]:
        stamp = timezone.now()
        retired = self.alive().update(deleted_at=stamp, updated_at=stamp)
        return retired, {self.model._meta.label: retired}


class SoftDeleteModel(BaseModel):
    deleted_at = models.DateTimeField(null=True, blank=True, default=None, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        """Stamp ``deleted_at``; deleting twice reports nothing removed."""
        if self.is_deleted:
            return 0, {}
        self._set_deleted_at(timezone.now())
        return 1, {self._meta.label: 1}

    def restore(self) -> None:
        if self.is_deleted:
            self._set_deleted_at(None)

    def _set_deleted_at(self, value) -> None:
        self.deleted_at = value
        self.save(update_fields=["deleted_at"])
