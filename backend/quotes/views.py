# quotes/views.py
import logging

from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts import policy
from accounts.permissions import HasCapability, auth_context
from backoffice.errors import DomainErrorsMixin
from invoices.serializers import InvoiceSerializer
from invoices.services import create_invoice_from_quotation

from . import services
from .models import Quotation, QuotationCharge, QuotationCommodity
from .serializers import GenerateInvoiceSerializer, QuotationSerializer, RejectSerializer

logger = logging.getLogger(__name__)


class QuotationViewSet(DomainErrorsMixin,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       mixins.CreateModelMixin,
                       mixins.UpdateModelMixin,
                       viewsets.GenericViewSet):
    queryset = (Quotation.objects
                .all().order_by('-created_at')
                .select_related('client', 'created_by', 'approved_by', 'invoice')
                .prefetch_related('commodities', 'commodities__charges'))
    serializer_class = QuotationSerializer
    permission_classes = [HasCapability]
    action_capabilities = {
        'list': policy.QUOTATION_VIEW,
        'retrieve': policy.QUOTATION_VIEW,
        'create': policy.QUOTATION_CREATE,
        'update': policy.QUOTATION_EDIT,
        'partial_update': policy.QUOTATION_EDIT,
        'approve': policy.QUOTATION_APPROVE,
        'reject': policy.QUOTATION_APPROVE,
        'generate_invoice': policy.QUOTATION_INVOICE,
        'remove_commodity': policy.QUOTATION_EDIT,
        'remove_charge': policy.QUOTATION_EDIT,
    }

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        if params.get('status'):
            qs = qs.filter(status=params['status'])
        if params.get('client'):
            qs = qs.filter(client_id=params['client'])
        if params.get('mine') in ('1', 'true'):
            qs = qs.filter(created_by=self.request.user)
        return qs

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        quotation = services.approve_quotation(auth_context(request), self.get_object())
        return Response(self.get_serializer(quotation).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        ser = RejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        quotation = services.reject_quotation(auth_context(request), self.get_object(), ser.validated_data['reason'])
        return Response(self.get_serializer(quotation).data)

    @action(detail=True, methods=['post'], url_path='generate-invoice')
    def generate_invoice(self, request, pk=None):
        ser = GenerateInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        invoice = create_invoice_from_quotation(auth_context(request), self.get_object(), ser.validated_data)
        return Response(InvoiceSerializer(invoice, context=self.get_serializer_context()).data,
                        status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'commodities/(?P<commodity_id>\d+)')
    def remove_commodity(self, request, pk=None, commodity_id=None):
        quotation = self.get_object()
        get_object_or_404(QuotationCommodity, pk=commodity_id, quotation=quotation)
        removed = services.remove_commodity(auth_context(request), quotation, int(commodity_id))
        quotation.refresh_from_db()
        return Response({'removed': removed, 'quotation': self.get_serializer(quotation).data})

    @action(detail=True, methods=['delete'],
            url_path=r'commodities/(?P<commodity_id>\d+)/charges/(?P<charge_id>\d+)')
    def remove_charge(self, request, pk=None, commodity_id=None, charge_id=None):
        quotation = self.get_object()
        get_object_or_404(QuotationCharge, pk=charge_id, commodity_id=commodity_id,
                          commodity__quotation=quotation)
        removed = services.remove_charge(auth_context(request), quotation, int(commodity_id), int(charge_id))
        quotation.refresh_from_db()
        return Response({'removed': removed, 'quotation': self.get_serializer(quotation).data})
