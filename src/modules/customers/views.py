"""Address API views.

Exposes ``AddressService`` over HTTP; every address is scoped to the
authenticated user.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.validation import first_error_message
from modules.customers.dtos import CreateAddressDTO
from modules.customers.repositories.django_repository import AddressDjangoRepository
from modules.customers.serializers import AddressSerializer
from modules.customers.services import AddressService


class AddressListView(APIView):
    """GET/POST /api/addresses"""

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AddressService(repository=AddressDjangoRepository())

    def get(self, request: Request) -> Response:
        addresses = self._service.list_addresses(request.user)
        return Response({"addresses": AddressSerializer(addresses, many=True).data})

    def post(self, request: Request) -> Response:
        data = request.data
        try:
            dto = CreateAddressDTO(
                name=data.get("name") or "",
                phone=data.get("phone") or "",
                street=data.get("street") or "",
                city=data.get("city") or "",
                region=data.get("region") or "",
                zip_code=data.get("zipCode") or None,
                latitude=data.get("latitude"),
                longitude=data.get("longitude"),
                is_default=bool(data.get("isDefault", False)),
            )
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        address = self._service.create_address(request.user, dto)
        return Response(
            {"success": True, "address": AddressSerializer(address).data},
            status=status.HTTP_201_CREATED,
        )
