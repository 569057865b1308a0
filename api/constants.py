BLOOD_TYPES = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')

ROLE_DONOR = 'donor'
ROLE_HOSPITAL = 'hospital'
ROLE_LAB = 'lab'
ROLE_ADMIN = 'admin'

FACILITY_ROLES = (ROLE_HOSPITAL, ROLE_LAB)
STOCK_ROLES = (ROLE_HOSPITAL, ROLE_LAB, ROLE_ADMIN)

UNIT_AVAILABLE = 'available'
UNIT_USED = 'used'
UNIT_EXPIRED = 'expired'
UNIT_STATUSES = (UNIT_AVAILABLE, UNIT_USED, UNIT_EXPIRED)

CAMP_UPCOMING = 'Upcoming'
CAMP_ONGOING = 'Ongoing'
CAMP_COMPLETED = 'Completed'
CAMP_CANCELLED = 'Cancelled'
CAMP_STATUSES = (CAMP_UPCOMING, CAMP_ONGOING, CAMP_COMPLETED, CAMP_CANCELLED)

REQUEST_PENDING = 'pending'
REQUEST_ACCEPTED = 'accepted'
REQUEST_REJECTED = 'rejected'
REQUEST_STATUSES = (REQUEST_PENDING, REQUEST_ACCEPTED, REQUEST_REJECTED)

# Facility activity log event types
EVENT_LOGIN = 'Login'
EVENT_STOCK_UPDATE = 'Stock Update'
EVENT_BLOOD_CAMP = 'Blood Camp'
EVENT_REQUEST_APPROVED = 'Request Approved'
EVENT_PROFILE_UPDATE = 'Profile Update'
EVENT_DONATION = 'Donation'
EVENT_CONTACT = 'Contact'
EVENT_VERIFICATION = 'Verification'

# Facility approval
FACILITY_PENDING = 'pending'
FACILITY_APPROVED = 'approved'
FACILITY_REJECTED = 'rejected'
FACILITY_STATUSES = (FACILITY_PENDING, FACILITY_APPROVED, FACILITY_REJECTED)

RARE_BLOOD_TYPES = ('O-', 'AB-', 'B-', 'A-')
