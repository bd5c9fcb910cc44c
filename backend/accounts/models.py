# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models

from . import policy


class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        (policy.ADMIN, 'Admin'),
        (policy.SALES_DIRECTOR, 'Sales Director'),
        (policy.SALES_AGENT, 'Sales Agent'),
        (policy.FINANCE_OFFICER, 'Finance Officer'),
        (policy.PARTNER, 'Partner'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=policy.SALES_AGENT)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
