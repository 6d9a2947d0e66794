"""Order pricing."""

from decimal import Decimal, InvalidOperation

COPIES_FIELD = 'copies'


def parse_copies(value):
    """Return a positive copy count parsed from form input, or ``None``.

    Leading digits are honoured the way a lenient form parser reads them
    (``"3 sets"`` is 3); anything non-numeric or below 1 is ignored.
    """
    if value is None:
        return None
    text = str(value).strip()
    digits = ''
    for index, char in enumerate(text):
        if char.isdigit() or (index == 0 and char in '+-'):
            digits += char
        else:
            break
    try:
        copies = int(digits)
    except ValueError:
        return None
    return copies if copies > 0 else None


def calculate_total(service, details=None):
    """Price an order for ``service`` given the submitted form ``details``.

    Per-copy services multiply the base price by the ``copies`` entry; a
    missing or unusable copy count falls back to the bare price.
    """
    try:
        price = Decimal(service.price)
    except (InvalidOperation, TypeError):
        price = Decimal('0')

    if service.price_per_copy and details:
        copies = parse_copies(details.get(COPIES_FIELD))
        if copies:
            return (price * copies).quantize(Decimal('0.01'))
    return price.quantize(Decimal('0.01'))
