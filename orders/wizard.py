"""The new-order wizard.

Four steps, walked strictly in order::

    SELECT_SERVICE -> FILL_DETAILS -> CONFIRM -> PAY -> SUBMITTED

Files are staged in memory while the customer fills the form and are only
written to storage by :meth:`OrderWizard.submit`, after the order row exists.
The order is committed first; a file that fails to store is logged and
reported in the :class:`SubmissionResult`, and the order is kept.
"""

import enum
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.db import DatabaseError

from services.fields import service_fields

from .models import Order, OrderDocument
from .pricing import calculate_total

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'gif', 'webp', 'bmp', 'heic')


class Step(enum.IntEnum):
    SELECT_SERVICE = 1
    FILL_DETAILS = 2
    CONFIRM = 3
    PAY = 4
    SUBMITTED = 5


class WizardError(Exception):
    """Base class for wizard errors; ``str(exc)`` is user-facing."""


class InvalidTransition(WizardError):
    def __init__(self, action, step):
        self.action = action
        self.step = step
        super().__init__(f"Cannot {action} while on step {step.name.lower()}.")


class MissingFields(WizardError):
    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__("Please fill in: " + ', '.join(self.fields))


class RejectedFile(WizardError):
    def __init__(self, file_name, reason):
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"{file_name}: {reason}")


def _extension(name):
    return os.path.splitext(name or '')[1].lower().lstrip('.')


@dataclass
class StagedFile:
    """A file held by the wizard until submission."""

    upload: object
    name: str
    size: int
    content_type: str = ''

    @property
    def is_image(self):
        if self.content_type.startswith('image/'):
            return True
        return _extension(self.name) in IMAGE_EXTENSIONS

    @property
    def kind(self):
        return 'photo' if self.is_image else 'document'


@dataclass
class SubmissionResult:
    order: Order
    documents: List[OrderDocument] = field(default_factory=list)
    failed_uploads: List[dict] = field(default_factory=list)

    @property
    def complete(self):
        return not self.failed_uploads


def check_upload(upload):
    """Wrap ``upload`` as a :class:`StagedFile` or raise :class:`RejectedFile`."""
    conf = settings.DASTAWEZ
    name = os.path.basename(getattr(upload, 'name', '') or 'file')
    size = getattr(upload, 'size', 0) or 0
    content_type = getattr(upload, 'content_type', '') or ''

    limit = conf['ORDER_UPLOAD_MAX_BYTES']
    if size > limit:
        raise RejectedFile(name, f"exceeds {limit // (1024 * 1024)}MB limit")

    staged = StagedFile(upload=upload, name=name, size=size, content_type=content_type)
    if not staged.is_image and _extension(name) not in conf['ORDER_UPLOAD_EXTENSIONS']:
        raise RejectedFile(name, "unsupported file type")
    return staged


class OrderWizard:
    """State machine behind the new-order flow for one customer."""

    def __init__(self, user):
        self.user = user
        self.step = Step.SELECT_SERVICE
        self.service = None
        self.details = {}
        self.notes = ''
        self.files: List[StagedFile] = []
        self.order: Optional[Order] = None

    @classmethod
    def for_payment(cls, order):
        """A wizard parked on the pay step of an already placed ``order``."""
        wizard = cls(order.user)
        wizard.service = order.service
        wizard.details = dict(order.details or {})
        wizard.notes = order.notes or ''
        wizard.order = order
        wizard.step = Step.PAY
        return wizard

    def _require(self, action, *steps):
        if self.step not in steps:
            raise InvalidTransition(action, self.step)

    @property
    def fields(self):
        return service_fields(self.service) if self.service is not None else []

    @property
    def total(self):
        if self.service is None:
            return None
        return calculate_total(self.service, self.details)

    def select_service(self, service):
        self._require('select a service', Step.SELECT_SERVICE)
        if not service.is_active:
            raise WizardError(f"{service.name} is not available right now.")
        self.service = service
        if not self.details:
            self.details = self.profile_defaults()
        self.step = Step.FILL_DETAILS
        return self.fields

    def profile_defaults(self):
        user = self.user
        return {
            'name': getattr(user, 'full_name', '') or '',
            'email': getattr(user, 'email', '') or '',
            'phone': getattr(user, 'phone', '') or '',
            'address': getattr(user, 'address', '') or '',
        }

    def set_details(self, values):
        self._require('edit details', Step.FILL_DETAILS)
        for key, value in (values or {}).items():
            self.details[str(key)] = '' if value is None else str(value)

    def set_notes(self, text):
        self._require('edit notes', Step.FILL_DETAILS)
        self.notes = (text or '').strip()

    def attach(self, upload):
        """Stage one uploaded file; oversized or unsupported files are rejected."""
        self._require('attach files', Step.FILL_DETAILS)
        staged = check_upload(upload)
        self.files.append(staged)
        return staged

    def detach(self, index):
        self._require('remove files', Step.FILL_DETAILS)
        try:
            return self.files.pop(index)
        except IndexError:
            raise WizardError(f"No staged file at position {index}.")

    def missing_fields(self):
        return [
            f['id'] for f in self.fields
            if f['required'] and not str(self.details.get(f['id'], '')).strip()
        ]

    def confirm(self):
        self._require('confirm', Step.FILL_DETAILS)
        missing = self.missing_fields()
        if missing:
            raise MissingFields(missing)
        self.step = Step.CONFIRM

    def back(self):
        self._require('go back', Step.FILL_DETAILS, Step.CONFIRM)
        self.step = Step(self.step - 1)

    def submit(self):
        """Create the order, then store each staged file against it."""
        self._require('submit', Step.CONFIRM)

        order = Order.objects.create(
            user=self.user,
            service=self.service,
            details=dict(self.details) or None,
            notes=self.notes or None,
            total_amount=calculate_total(self.service, self.details),
        )
        self.order = order
        result = SubmissionResult(order=order)

        for staged in self.files:
            document = OrderDocument(order=order, file_name=staged.name, document_type=OrderDocument.UPLOADED)
            try:
                document.file.save(staged.name, staged.upload, save=True)
            except (OSError, DatabaseError, SuspiciousFileOperation) as exc:
                logger.exception("Upload of %s failed for order %s", staged.name, order.pk)
                result.failed_uploads.append({'file_name': staged.name, 'error': str(exc)})
                continue
            result.documents.append(document)

        self.files = []
        self.step = Step.PAY
        logger.info(
            "Order %s placed by user %s for %s (%s files, %s failed)",
            order.pk, self.user.pk, self.service.name, len(result.documents), len(result.failed_uploads),
        )
        return result

    def complete_payment(self):
        """The customer says they paid; nothing is verified."""
        self._require('complete payment', Step.PAY)
        self.step = Step.SUBMITTED
        return self.order
