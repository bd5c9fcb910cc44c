import logging

from django.db.models import Q
from django.utils import timezone
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts import policy
from accounts.permissions import HasCapability, auth_context
from backoffice.errors import DomainErrorsMixin

from . import services
from .models import Invoice
from .serializers import InvoiceSerializer

logger = logging.getLogger(__name__)


class InvoiceViewSet(DomainErrorsMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     mixins.UpdateModelMixin,
                     viewsets.GenericViewSet):
    queryset = (Invoice.objects
                .all()
                .select_related('client', 'quotation', 'created_by')
                .prefetch_related('items', 'items__charges'))
    serializer_class = InvoiceSerializer
    permission_classes = [HasCapability]
    action_capabilities = {
        'list': policy.INVOICE_VIEW,
        'retrieve': policy.INVOICE_VIEW,
        'create': policy.INVOICE_CREATE,
        'update': policy.INVOICE_EDIT,
        'partial_update': policy.INVOICE_EDIT,
        'mark_paid': policy.INVOICE_MARK_PAID,
    }

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        wanted = params.get('status')
        today = timezone.localdate()
        # overdue is never stored: pending and past due
        if wanted == 'overdue':
            qs = qs.filter(status='pending', due_date__lt=today)
        elif wanted == 'pending':
            qs = qs.filter(Q(status='pending') & Q(due_date__gte=today))
        elif wanted:
            qs = qs.filter(status=wanted)
        if params.get('client'):
            qs = qs.filter(client_id=params['client'])
        return qs

    @action(detail=True, methods=['post'], url_path='mark-paid')
    def mark_paid(self, request, pk=None):
        invoice = services.mark_paid(auth_context(request), self.get_object())
        return Response(self.get_serializer(invoice).data)
