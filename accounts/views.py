# accounts/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .serializers import AddressSerializer, AddressWriteSerializer
from .services import AddressBook


class AddressViewSet(viewsets.ViewSet):
    """Delivery addresses of the signed-in user."""

    permission_classes = [IsAuthenticated]
    serializer_class = AddressSerializer

    def _book(self) -> AddressBook:
        return AddressBook(self.request.user)

    def list(self, request):
        return Response(AddressSerializer(self._book().list(), many=True).data)

    def retrieve(self, request, pk=None):
        return Response(AddressSerializer(self._book().get(pk)).data)

    def _validated(self, request, partial=False) -> dict:
        ser = AddressWriteSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        return ser.validated_data

    @extend_schema(request=AddressWriteSerializer)
    def create(self, request):
        address = self._book().create(self._validated(request))
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=AddressWriteSerializer)
    def partial_update(self, request, pk=None):
        address = self._book().update(pk, self._validated(request, partial=True))
        return Response(AddressSerializer(address).data)

    def destroy(self, request, pk=None):
        promoted = self._book().delete(pk)
        if promoted is not None:
            return Response({"promoted_default": str(promoted.pk)}, status=status.HTTP_200_OK)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def make_default(self, request, pk=None):
        address = self._book().make_default(pk)
        return Response(AddressSerializer(address).data)
