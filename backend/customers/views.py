import logging

from rest_framework import viewsets

from accounts import policy
from accounts.permissions import HasCapability

from .models import Client
from .serializers import ClientSerializer

logger = logging.getLogger(__name__)


class ClientViewSet(viewsets.ModelViewSet):
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    permission_classes = [HasCapability]
    action_capabilities = {
        'list': policy.CLIENT_VIEW,
        'retrieve': policy.CLIENT_VIEW,
        'create': policy.CLIENT_MANAGE,
        'update': policy.CLIENT_MANAGE,
        'partial_update': policy.CLIENT_MANAGE,
        'destroy': policy.CLIENT_MANAGE,
    }

    def get_queryset(self):
        qs = super().get_queryset()
        search = self.request.query_params.get('search')
        if search:
            qs = qs.filter(company_name__icontains=search)
        return qs

    def perform_create(self, serializer):
        client = serializer.save()
        logger.info(f"Client '{client.company_name}' created by {self.request.user.username}")
