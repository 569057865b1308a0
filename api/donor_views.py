from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import donations
from .auth_utils import authenticate_request, require_role
from .camp_views import camp_filters, camp_page
from .constants import BLOOD_TYPES, EVENT_CONTACT, EVENT_DONATION, FACILITY_ROLES, ROLE_DONOR
from .db import get_db
from .exceptions import NotFound
from .history import record_event
from .serializers import DonationSerializer
from .utils import jsonable, page_info, page_params, serialize_doc


def current_donor(request):
    donor = get_db().users.find_one({"_id": request.user_id}, {"password": 0, "history": 0})
    if not donor:
        raise NotFound("Donor not found")
    return donor


# Donor side

class DonorHistoryView(APIView):
    @authenticate_request
    @require_role(ROLE_DONOR)
    def get(self, request):
        page, limit = page_params(request.query_params)
        history, total = donations.donation_history(get_db(), current_donor(request), page, limit)
        return Response({
            "success": True,
            "history": [serialize_doc(entry) for entry in history],
            "pagination": page_info(total, page, limit),
        })


class DonorStatsView(APIView):
    @authenticate_request
    @require_role(ROLE_DONOR)
    def get(self, request):
        stats = donations.donor_stats(current_donor(request))
        return Response({"success": True, "dashboard": jsonable(stats)})


class DonorCampsView(APIView):
    """Every camp, soonest first, unless a status is asked for."""

    @authenticate_request
    @require_role(ROLE_DONOR)
    def get(self, request):
        filters = camp_filters(request.query_params, default_status='all')
        filters['sort_order'] = filters['sort_order'] or 'asc'
        return camp_page(get_db(), filters)


# Facility side

class DonationView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def post(self, request, donor_id):
        db = get_db()
        serializer = DonationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        donor, entry, unit = donations.record_donation(
            db, request.user_id, donor_id,
            quantity=data['quantity'], blood_type=data.get('bloodType'), remarks=data['remarks'],
        )
        record_event(
            db, request.user_id, EVENT_DONATION,
            f"Recorded donation from {donor['name']} - {entry['quantity']} unit(s) of {entry['bloodType']}",
            donor['_id'],
        )
        return Response({
            "success": True,
            "message": "Donation recorded successfully",
            "donor": serialize_doc(donor),
            "donation": serialize_doc(entry),
            "bloodUnit": serialize_doc(unit),
        })


class RecentDonationsView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def get(self, request):
        stats, recent = donations.recent_donations(get_db(), request.user_id)
        return Response({"success": True, "stats": stats, "donations": jsonable(recent)})


class DonorSearchView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def get(self, request):
        term = (request.query_params.get('term') or '').strip()
        if not term:
            raise ValidationError("Search term required")
        found = donations.search_donors(get_db(), term)
        return Response({"success": True, "donors": [serialize_doc(d) for d in found]})


class DonorDirectoryView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def get(self, request):
        params = request.query_params
        page, limit = page_params(params, default_limit=20)

        blood_type = params.get('bloodType', 'all')
        if blood_type != 'all' and blood_type not in BLOOD_TYPES:
            raise ValidationError(f"bloodType must be one of: {', '.join(BLOOD_TYPES)}")
        availability = params.get('availability', 'all')
        if availability not in donations.AVAILABILITY:
            raise ValidationError(f"availability must be one of: {', '.join(donations.AVAILABILITY)}")
        sort_by = params.get('sortBy', 'lastDonation')
        if sort_by not in donations.DIRECTORY_SORTS:
            raise ValidationError(f"sortBy must be one of: {', '.join(donations.DIRECTORY_SORTS)}")
        city = params.get('city', 'all')

        found, total, stats = donations.donor_directory(
            get_db(),
            search=params.get('search') or None,
            blood_type=None if blood_type == 'all' else blood_type,
            city=None if city in ('', 'all') else city,
            availability=availability,
            sort_by=sort_by,
            page=page,
            limit=limit,
        )
        return Response({
            "success": True,
            "donors": [serialize_doc(d) for d in found],
            "pagination": page_info(total, page, limit),
            "stats": stats,
        })


class DonorContactView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def post(self, request, donor_id):
        db = get_db()
        donor = donations.log_contact(db, request.user_data, donor_id)
        record_event(
            db, request.user_id, EVENT_CONTACT,
            f"Contacted donor {donor['name']} ({donor['bloodType']})", donor['_id'],
        )
        return Response({"success": True, "message": "Contact logged successfully"})
