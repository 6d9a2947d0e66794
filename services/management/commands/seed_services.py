from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from services.models import Service

CATALOG = {
    Service.PRINTING: [
        ('ID Card Printing', 'Professional ID card printing with lamination', 'CreditCard', '50', True),
        ('Photo Printing', 'Passport size and other photo prints', 'Image', '20', True),
        ('Document Printing', 'A4/A3 document printing', 'FileText', '5', True),
        ('Brochure Printing', 'Business brochures and flyers', 'BookOpen', '100', True),
    ],
    Service.CERTIFICATES: [
        ('Domicile Certificate', 'Government domicile certificate', 'Home', '150', False),
        ('Income Certificate', 'Government income certificate', 'IndianRupee', '100', False),
        ('Caste Certificate', 'Government caste certificate', 'Users', '100', False),
        ('Birth Certificate', 'Government birth certificate', 'Baby', '150', False),
    ],
    Service.BILLS: [
        ('Electricity Bill', 'Pay your electricity bills', 'Zap', '10', False),
        ('Water Bill', 'Pay your water bills', 'Droplet', '10', False),
        ('Mobile Recharge', 'Prepaid and postpaid recharge', 'Smartphone', '5', False),
    ],
    Service.MP_ONLINE: [
        ('PAN Card', 'Apply for new or correction in PAN', 'CreditCard', '200', False),
        ('Aadhaar Update', 'Update Aadhaar details', 'Fingerprint', '100', False),
        ('E-Shram Card', 'Register for E-Shram card', 'Briefcase', '50', False),
    ],
}


class Command(BaseCommand):
    help = 'Create the starter service catalog. Existing services (matched by name) are left untouched.'

    def add_arguments(self, parser):
        parser.add_argument('--update', action='store_true', help='Overwrite price/description/icon of existing services.')

    @transaction.atomic
    def handle(self, *args, **options):
        created = updated = 0
        for category, rows in CATALOG.items():
            for name, description, icon, price, per_copy in rows:
                values = {
                    'category': category,
                    'description': description,
                    'icon': icon,
                    'price': Decimal(price),
                    'price_per_copy': per_copy,
                }
                service = Service.objects.filter(name=name).first()
                if service is None:
                    Service.objects.create(name=name, **values)
                    created += 1
                elif options['update']:
                    for attr, value in values.items():
                        setattr(service, attr, value)
                    service.save()
                    updated += 1

        self.stdout.write(self.style.SUCCESS(f'Seeding completed: {created} created, {updated} updated.'))
