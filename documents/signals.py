from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import UserDocument


@receiver(post_delete, sender=UserDocument)
def delete_user_document_file(sender, instance, **kwargs):
    if instance.file:
        instance.file.delete(save=False)
