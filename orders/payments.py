"""UPI payment links and QR codes for orders.

Payment is self-reported: nothing here talks to a payment provider. The QR
image comes from a public QR rendering endpoint.
"""

import logging
from decimal import Decimal
from urllib.parse import quote, urlencode

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class QRCodeUnavailable(Exception):
    """The QR endpoint could not be reached or returned an error."""


def _format_amount(amount):
    if amount is None:
        return '0'
    return format(Decimal(amount).normalize(), 'f')


def transaction_note(order):
    service = order.service_name or 'Service'
    return f"Order: {service} - {str(order.pk)[:8]}"


def upi_link(order):
    """``upi://pay`` deep link for ``order``'s frozen total."""
    conf = settings.DASTAWEZ
    return (
        f"upi://pay?pa={quote(conf['UPI_ID'], safe='')}"
        f"&pn={quote(conf['MERCHANT_NAME'], safe='')}"
        f"&am={_format_amount(order.total_amount)}"
        f"&tn={quote(transaction_note(order), safe='')}"
        f"&cu={conf['CURRENCY']}"
    )


def qr_code_url(order):
    conf = settings.DASTAWEZ
    query = urlencode({'size': conf['QR_SIZE'], 'data': upi_link(order)})
    return f"{conf['QR_ENDPOINT']}?{query}"


def fetch_qr_image(order):
    """Download the QR PNG; returns ``(content, content_type)``."""
    url = qr_code_url(order)
    try:
        resp = requests.get(url, timeout=settings.DASTAWEZ['QR_TIMEOUT'])
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("QR code fetch failed for order %s: %s", order.pk, exc)
        raise QRCodeUnavailable(str(exc)) from exc
    return resp.content, resp.headers.get('Content-Type', 'image/png')


def payment_details(order):
    conf = settings.DASTAWEZ
    return {
        'order_id': str(order.pk),
        'amount': order.total_amount,
        'currency': conf['CURRENCY'],
        'upi_id': conf['UPI_ID'],
        'merchant_name': conf['MERCHANT_NAME'],
        'note': transaction_note(order),
        'upi_link': upi_link(order),
        'qr_code_url': qr_code_url(order),
    }
