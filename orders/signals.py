"""Signals that publish order changes and clean up stored files."""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from notifications.realtime import ChangeEvent, feed

from .models import Order, OrderDocument


def row_snapshot(instance):
    """Column values of ``instance`` keyed by attribute name (``user_id``, ...)."""
    return {f.attname: getattr(instance, f.attname) for f in instance._meta.concrete_fields}


@receiver(pre_save, sender=Order)
def remember_previous_order_row(sender, instance, raw=False, **kwargs):
    """Capture the stored row so the update event can carry ``old``."""
    if raw or instance._state.adding:
        instance._previous_row = None
        return
    instance._previous_row = Order.objects.filter(pk=instance.pk).values().first()


@receiver(post_save, sender=Order)
def publish_order_change(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    if created:
        feed.publish(ChangeEvent.ORDER_INSERT, row_snapshot(instance))
    else:
        feed.publish(ChangeEvent.ORDER_UPDATE, row_snapshot(instance), getattr(instance, '_previous_row', None))


@receiver(post_save, sender=OrderDocument)
def publish_order_document_change(sender, instance, created, raw=False, **kwargs):
    if created and not raw:
        row = row_snapshot(instance)
        row['file'] = instance.file.name
        feed.publish(ChangeEvent.ORDER_DOCUMENT_INSERT, row)


@receiver(post_delete, sender=OrderDocument)
def delete_order_document_file(sender, instance, **kwargs):
    """Deleting the row (directly or by cascade) removes the stored object."""
    if instance.file:
        instance.file.delete(save=False)
