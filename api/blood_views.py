from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import inventory
from .auth_utils import authenticate_request, require_role
from .constants import BLOOD_TYPES, EVENT_STOCK_UPDATE, STOCK_ROLES, UNIT_STATUSES
from .db import get_db
from .history import record_event
from .serializers import BloodUnitCreateSerializer, BloodUnitUpdateSerializer, UseBloodSerializer
from .utils import page_info, page_params, serialize_doc


class BloodUnitListView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def get(self, request):
        db = get_db()
        params = request.query_params
        page, limit = page_params(params)

        unit_status = params.get('status') or None
        blood_type = params.get('bloodType') or None
        if unit_status and unit_status not in UNIT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(UNIT_STATUSES)}")
        if blood_type and blood_type not in BLOOD_TYPES:
            raise ValidationError(f"bloodType must be one of: {', '.join(BLOOD_TYPES)}")

        units, total = inventory.list_units(
            db, request.user_id, status=unit_status, blood_type=blood_type, page=page, limit=limit,
        )
        pagination = page_info(total, page, limit)
        return Response({
            "success": True,
            "bloodUnits": [serialize_doc(u) for u in units],
            "totalPages": pagination['totalPages'],
            "currentPage": page,
            "total": total,
        })

    @authenticate_request
    @require_role(*STOCK_ROLES)
    def post(self, request):
        db = get_db()
        serializer = BloodUnitCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        unit = inventory.add_unit(
            db, request.user_id, data['bloodType'], data['quantity'], data.get('collectionDate'),
        )
        record_event(
            db, request.user_id, EVENT_STOCK_UPDATE,
            f"Added {unit['quantity']} units of {unit['bloodType']}", unit['_id'],
        )
        return Response({
            "success": True,
            "message": "Blood unit added successfully",
            "bloodUnit": serialize_doc(unit),
        }, status=status.HTTP_201_CREATED)


class BloodInventoryView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def get(self, request):
        summary = inventory.inventory_summary(get_db(), request.user_id)
        return Response({"success": True, "inventory": summary})


class ExpiredBloodView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def get(self, request):
        expired = inventory.list_expired(get_db(), request.user_id)
        return Response({
            "success": True,
            "expiredBlood": [serialize_doc(u) for u in expired],
            "count": len(expired),
        })


class BloodUnitDetailView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def put(self, request, unit_id):
        db = get_db()
        serializer = BloodUnitUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        unit = inventory.update_unit(db, request.user_id, unit_id, serializer.validated_data)
        return Response({
            "success": True,
            "message": "Blood unit updated successfully",
            "bloodUnit": serialize_doc(unit),
        })

    @authenticate_request
    @require_role(*STOCK_ROLES)
    def delete(self, request, unit_id):
        db = get_db()
        unit = inventory.delete_unit(db, request.user_id, unit_id)
        record_event(
            db, request.user_id, EVENT_STOCK_UPDATE,
            f"Removed {unit['quantity']} units of {unit['bloodType']}", unit['_id'],
        )
        return Response({"success": True, "message": "Blood unit deleted successfully"})


class UseBloodView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def patch(self, request, unit_id):
        db = get_db()
        serializer = UseBloodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        used_quantity = serializer.validated_data.get('usedQuantity')

        unit = inventory.use_unit(db, request.user_id, unit_id, used_quantity)
        how = 'partially' if used_quantity else 'fully'
        record_event(
            db, request.user_id, EVENT_STOCK_UPDATE,
            f"Used {used_quantity or 'all'} units of {unit['bloodType']}", unit['_id'],
        )
        return Response({
            "success": True,
            "message": f"Blood unit {how} used successfully",
            "bloodUnit": serialize_doc(unit),
        })
