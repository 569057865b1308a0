from bson import ObjectId
from bson.errors import InvalidId
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import camps
from .auth_utils import authenticate_request, require_role
from .constants import CAMP_UPCOMING, EVENT_BLOOD_CAMP, ROLE_DONOR, STOCK_ROLES
from .db import get_db
from .history import record_event
from .serializers import CampSerializer, CampStatusSerializer
from .utils import page_info, page_params, serialize_doc


def camp_filters(params, default_status):
    """Read status/search/sort/paging query parameters for a camp listing."""
    raw_status = params.get('status', default_status)
    camp_status = None
    if raw_status and raw_status != 'all':
        checker = CampStatusSerializer(data={"status": raw_status})
        checker.is_valid(raise_exception=True)
        camp_status = checker.validated_data['status']

    sort_order = params.get('sortOrder')
    if sort_order not in (None, 'asc', 'desc'):
        raise ValidationError("sortOrder must be 'asc' or 'desc'")

    page, limit = page_params(params)
    return {
        "status": camp_status,
        "search": params.get('search') or None,
        "sort_by": params.get('sortBy', 'date'),
        "sort_order": sort_order,
        "page": page,
        "limit": limit,
    }


def camp_page(db, filters, **extra):
    found, total = camps.list_camps(db, **filters, **extra)
    return Response({
        "success": True,
        "camps": [serialize_doc(c) for c in found],
        "pagination": page_info(total, filters['page'], filters['limit']),
    })


class CampListView(APIView):
    @authenticate_request
    def get(self, request):
        filters = camp_filters(request.query_params, default_status=CAMP_UPCOMING)
        filters['sort_order'] = filters['sort_order'] or 'asc'

        hospital = request.query_params.get('hospital')
        if hospital:
            try:
                hospital = ObjectId(hospital)
            except InvalidId:
                raise ValidationError("hospital must be a valid id")
        return camp_page(get_db(), filters, hospital=hospital or None)

    @authenticate_request
    @require_role(*STOCK_ROLES)
    def post(self, request):
        db = get_db()
        serializer = CampSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        camp = camps.create_camp(db, request.user_id, serializer.validated_data)
        address = camp['address']
        record_event(
            db, request.user_id, EVENT_BLOOD_CAMP,
            f'Organized "{camp["title"]}" at {address["street"]}, {address["city"]}', camp['_id'],
        )
        return Response({
            "success": True,
            "message": "Camp created successfully",
            "camp": serialize_doc(camp),
        }, status=status.HTTP_201_CREATED)


class MyCampsView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def get(self, request):
        filters = camp_filters(request.query_params, default_status='all')
        filters['sort_order'] = filters['sort_order'] or 'desc'
        return camp_page(get_db(), filters, hospital=request.user_id)


class CampDetailView(APIView):
    @authenticate_request
    def get(self, request, camp_id):
        camp = camps.get_camp(get_db(), camp_id)
        return Response({"success": True, "camp": serialize_doc(camp)})

    @authenticate_request
    @require_role(*STOCK_ROLES)
    def put(self, request, camp_id):
        db = get_db()
        serializer = CampSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        camp = camps.update_camp(db, request.user_id, camp_id, serializer.validated_data)
        record_event(db, request.user_id, EVENT_BLOOD_CAMP, f"Updated camp: {camp['title']}", camp['_id'])
        return Response({
            "success": True,
            "message": "Camp updated successfully",
            "camp": serialize_doc(camp),
        })

    @authenticate_request
    @require_role(*STOCK_ROLES)
    def delete(self, request, camp_id):
        db = get_db()
        camp = camps.delete_camp(db, request.user_id, camp_id)
        record_event(db, request.user_id, EVENT_BLOOD_CAMP, f"Deleted camp: {camp['title']}")
        return Response({"success": True, "message": "Camp deleted successfully"})


class CampStatusView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def patch(self, request, camp_id):
        db = get_db()
        serializer = CampStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']

        camp = camps.change_status(db, request.user_id, camp_id, new_status)
        record_event(
            db, request.user_id, EVENT_BLOOD_CAMP,
            f"Changed camp status to: {new_status} - {camp['title']}", camp['_id'],
        )
        return Response({
            "success": True,
            "message": f"Camp status updated to {new_status}",
            "camp": serialize_doc(camp),
        })


class CampRegistrationView(APIView):
    @authenticate_request
    @require_role(ROLE_DONOR)
    def post(self, request, camp_id):
        camp = camps.register_donor(get_db(), camp_id, request.user_id)
        return Response({
            "success": True,
            "message": "Registered for camp successfully",
            "camp": serialize_doc(camp),
        })
