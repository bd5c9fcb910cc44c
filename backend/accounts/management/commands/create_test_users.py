from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from accounts import policy
from accounts.models import CustomUser


class Command(BaseCommand):
    help = 'Create one test user for each role'

    def add_arguments(self, parser):
        parser.add_argument('--password', default=None,
                            help='Password for every user (defaults to <role>_password)')

    def handle(self, *args, **options):
        for role in policy.ROLES:
            username = f"{role}_user"
            # Check if user already exists
            if CustomUser.objects.filter(username=username).exists():
                self.stdout.write(
                    self.style.WARNING(f"User {username} already exists")
                )
                continue

            password = options['password'] or f"{role}_password"
            user = CustomUser.objects.create(
                username=username,
                password=make_password(password),
                role=role,
                is_staff=(role == policy.ADMIN),
            )

            self.stdout.write(
                self.style.SUCCESS(f"Successfully created {role} user: {user.username}")
            )

        self.stdout.write(
            self.style.SUCCESS("All test users created successfully!")
        )
