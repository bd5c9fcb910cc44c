"""
Translate domain exceptions raised by the service layer into API responses.

Every error leaves the API as ``{'detail': ...}`` with the exception's own
status code; pricing validation errors also name the offending field.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.response import Response

from accounts.policy import AccessDenied
from fx.services import RateNotFound
from invoices.services import InvoiceError
from pricing.exceptions import PricingValidationError
from quotes.services import QuotationWorkflowError
from reports.services import ReportError

logger = logging.getLogger(__name__)


def domain_error_response(exc):
    if isinstance(exc, PricingValidationError):
        return Response({'detail': exc.message, 'field': exc.field}, status=400)
    if isinstance(exc, (QuotationWorkflowError, InvoiceError, ReportError)):
        return Response({'detail': exc.message}, status=exc.status_code)
    if isinstance(exc, RateNotFound):
        return Response({'detail': exc.message}, status=409)
    if isinstance(exc, AccessDenied):
        return Response({'detail': str(exc)}, status=403)
    if isinstance(exc, DjangoValidationError):
        # model save() guards on locked records
        logger.warning(f"Blocked write to a locked record: {exc.messages}")
        return Response({'detail': ' '.join(exc.messages)}, status=409)
    return None


class DomainErrorsMixin:
    """Mixed into API views ahead of the DRF base class."""

    def handle_exception(self, exc):
        response = domain_error_response(exc)
        if response is not None:
            return response
        return super().handle_exception(exc)
