from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from accounts.models import UserRole


class Command(BaseCommand):
    help = 'Grant (or with --revoke, remove) the admin role for an existing account.'

    def add_arguments(self, parser):
        parser.add_argument('email', help='Email address of the account.')
        parser.add_argument('--revoke', action='store_true', help='Remove the admin role instead of granting it.')

    def handle(self, *args, **options):
        User = get_user_model()
        email = options['email'].strip().lower()
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise CommandError(f"No account found for {email}.")

        if options['revoke']:
            deleted, _ = UserRole.objects.filter(user=user, role=UserRole.ADMIN).delete()
            if deleted:
                self.stdout.write(self.style.SUCCESS(f"Revoked admin role from {email}."))
            else:
                self.stdout.write(self.style.NOTICE(f"{email} was not an admin."))
            return

        _, created = UserRole.objects.get_or_create(user=user, role=UserRole.ADMIN)
        if created:
            self.stdout.write(self.style.SUCCESS(f"Granted admin role to {email}."))
        else:
            self.stdout.write(self.style.NOTICE(f"{email} is already an admin."))
