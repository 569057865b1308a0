from django.urls import path

from .admin_views import (
    AdminDashboardView, AdminDonorListView, AdminFacilityListView, FacilityApproveView, FacilityRejectView,
)
from .blood_views import (
    BloodInventoryView, BloodUnitDetailView, BloodUnitListView, ExpiredBloodView, UseBloodView,
)
from .camp_views import (
    CampDetailView, CampListView, CampRegistrationView, CampStatusView, MyCampsView,
)
from .donor_views import (
    DonationView, DonorCampsView, DonorContactView, DonorDirectoryView, DonorHistoryView, DonorSearchView,
    DonorStatsView, RecentDonationsView,
)
from .facility_views import FacilityDashboardView, FacilityHistoryView, LabListView
from .request_views import (
    HospitalBloodRequestView, HospitalRequestListView, LabRequestListView, LabRequestProcessView,
)
from .views import LoginView, ProfileView, RegisterView


def blood_unit_routes(prefix, name):
    return [
        path(f'{prefix}', BloodUnitListView.as_view(), name=f'{name}-list'),
        path(f'{prefix}/inventory', BloodInventoryView.as_view(), name=f'{name}-inventory'),
        path(f'{prefix}/expired', ExpiredBloodView.as_view(), name=f'{name}-expired'),
        path(f'{prefix}/<str:unit_id>', BloodUnitDetailView.as_view(), name=f'{name}-detail'),
        path(f'{prefix}/<str:unit_id>/use', UseBloodView.as_view(), name=f'{name}-use'),
    ]


urlpatterns = [
    # Auth
    path('auth/register', RegisterView.as_view(), name='register'),
    path('auth/login', LoginView.as_view(), name='login'),
    path('auth/profile', ProfileView.as_view(), name='profile'),

    # Camps
    path('camps', CampListView.as_view(), name='camps'),
    path('camps/my-camps', MyCampsView.as_view(), name='my-camps'),
    path('camps/<str:camp_id>', CampDetailView.as_view(), name='camp-detail'),
    path('camps/<str:camp_id>/status', CampStatusView.as_view(), name='camp-status'),
    path('camps/<str:camp_id>/register', CampRegistrationView.as_view(), name='camp-register'),

    # Hospital blood requests (before the unit routes so "request" is not read as a unit id)
    path('hospital/blood/request', HospitalBloodRequestView.as_view(), name='hospital-blood-request'),
    path('hospital/blood/requests', HospitalRequestListView.as_view(), name='hospital-blood-requests'),

    # Lab blood requests
    path('blood-lab/blood/requests', LabRequestListView.as_view(), name='lab-blood-requests'),
    path('blood-lab/blood/requests/<str:request_id>', LabRequestProcessView.as_view(), name='lab-blood-request-process'),

    # Facility
    path('hospital/dashboard', FacilityDashboardView.as_view(), name='facility-dashboard'),
    path('hospital/history', FacilityHistoryView.as_view(), name='facility-history'),
    path('facility/labs', LabListView.as_view(), name='labs'),

    # Donors
    path('donor/history', DonorHistoryView.as_view(), name='donor-history'),
    path('donor/stats', DonorStatsView.as_view(), name='donor-stats'),
    path('donor/camps', DonorCampsView.as_view(), name='donor-camps'),

    # Donations and the donor directory
    path('blood-lab/donors/search', DonorSearchView.as_view(), name='donor-search'),
    path('blood-lab/donors/donate/<str:donor_id>', DonationView.as_view(), name='donor-donate'),
    path('blood-lab/donations/recent', RecentDonationsView.as_view(), name='recent-donations'),
    path('hospital/donors', DonorDirectoryView.as_view(), name='donor-directory'),
    path('hospital/donors/<str:donor_id>/contact', DonorContactView.as_view(), name='donor-contact'),

    # Admin
    path('admin/dashboard', AdminDashboardView.as_view(), name='admin-dashboard'),
    path('admin/facilities', AdminFacilityListView.as_view(), name='admin-facilities'),
    path('admin/donors', AdminDonorListView.as_view(), name='admin-donors'),
    path('admin/facility/approve/<str:facility_id>', FacilityApproveView.as_view(), name='facility-approve'),
    path('admin/facility/reject/<str:facility_id>', FacilityRejectView.as_view(), name='facility-reject'),
]

# Blood stock, shared by hospitals and labs
urlpatterns += blood_unit_routes('hospital/blood', 'hospital-blood')
urlpatterns += blood_unit_routes('blood-lab/blood', 'lab-blood')
