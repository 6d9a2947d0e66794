"""Order form field definitions for services.

A field is a plain dict: ``{id, label, placeholder, type, required}``.
"""

from .models import Service

FIELD_TYPES = ('text', 'number', 'email', 'tel', 'date', 'textarea')

DEFAULT_CATEGORY_FIELDS = {
    Service.PRINTING: [
        {'id': 'copies', 'label': 'Number of Copies', 'placeholder': 'Enter number of copies', 'type': 'number', 'required': True},
        {'id': 'paperSize', 'label': 'Paper Size', 'placeholder': 'e.g., A4, A3, Letter', 'required': True},
        {'id': 'colorType', 'label': 'Print Type', 'placeholder': 'e.g., Color, Black & White', 'required': True},
    ],
    Service.CERTIFICATES: [
        {'id': 'applicantName', 'label': 'Applicant Full Name', 'placeholder': 'Name as per documents', 'required': True},
        {'id': 'fatherName', 'label': "Father's Name", 'placeholder': "Enter father's name", 'required': True},
        {'id': 'dateOfBirth', 'label': 'Date of Birth', 'placeholder': 'DD/MM/YYYY', 'required': True},
        {'id': 'aadharNumber', 'label': 'Aadhar Number', 'placeholder': '12-digit Aadhar number', 'required': True},
        {'id': 'samagraId', 'label': 'Samagra ID', 'placeholder': 'Enter Samagra ID', 'required': False},
    ],
    Service.BILLS: [
        {'id': 'accountNumber', 'label': 'Account/Consumer Number', 'placeholder': 'Enter account number', 'required': True},
        {'id': 'billAmount', 'label': 'Bill Amount (₹)', 'placeholder': 'Enter bill amount', 'type': 'number', 'required': True},
        {'id': 'billType', 'label': 'Bill Type', 'placeholder': 'e.g., Electricity, Water, Gas', 'required': True},
    ],
    Service.MP_ONLINE: [
        {'id': 'applicantName', 'label': 'Applicant Full Name', 'placeholder': 'Name as per documents', 'required': True},
        {'id': 'fatherName', 'label': "Father's Name", 'placeholder': "Enter father's name", 'required': True},
        {'id': 'aadharNumber', 'label': 'Aadhar Number', 'placeholder': '12-digit Aadhar number', 'required': True},
        {'id': 'serviceType', 'label': 'Service Required', 'placeholder': 'e.g., Domicile, Income, Caste', 'required': True},
    ],
}


def _normalize_field(raw):
    return {
        'id': str(raw['id']),
        'label': str(raw.get('label') or raw['id']),
        'placeholder': str(raw.get('placeholder') or ''),
        'type': raw.get('type') or 'text',
        'required': bool(raw.get('required', False)),
    }


def parse_custom_fields(value):
    """Return the stored custom field list, or ``None`` when it is not a list."""
    if not value or not isinstance(value, list):
        return None
    return [_normalize_field(f) for f in value if isinstance(f, dict) and f.get('id')]


def default_fields(category):
    return [_normalize_field(f) for f in DEFAULT_CATEGORY_FIELDS.get(category, [])]


def service_fields(service):
    """Fields the order form shows for ``service``.

    The service's own ``custom_fields`` win; an empty or missing list falls
    back to the category defaults.
    """
    fields = parse_custom_fields(service.custom_fields)
    if fields:
        return fields
    return default_fields(service.category)


def required_field_ids(service):
    return [f['id'] for f in service_fields(service) if f['required']]
