"""
Request payload validation.

Registration is a closed set of serializers, one per role, each declaring
the fields that role must provide. The remaining serializers validate the
stock, camp and blood-request payloads before they reach the database.
"""
import datetime
import re

from django.conf import settings
from django.utils.dateparse import parse_date
from rest_framework import serializers

from .constants import (
    BLOOD_TYPES, CAMP_STATUSES, FACILITY_APPROVED, FACILITY_PENDING, ROLE_ADMIN, ROLE_DONOR, ROLE_HOSPITAL,
    ROLE_LAB, UNIT_STATUSES,
)
from .utils import naive_utc

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PINCODE_RE = r'^[1-9][0-9]{5}$'


class DateOrDateTimeField(serializers.DateTimeField):
    """Accepts ISO datetimes or plain ``YYYY-MM-DD`` dates; yields naive UTC."""

    def to_internal_value(self, value):
        if isinstance(value, str):
            text = value.strip()
            if len(text) == 10:
                day = parse_date(text)
                if day is not None:
                    return datetime.datetime.combine(day, datetime.time.min)
        return naive_utc(super().to_internal_value(value))


class CampStatusField(serializers.ChoiceField):
    """Camp status, matched case-insensitively against the canonical names."""

    def __init__(self, **kwargs):
        super().__init__(choices=CAMP_STATUSES, **kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            for choice in CAMP_STATUSES:
                if choice.lower() == data.strip().lower():
                    return choice
        self.fail('invalid_choice', input=data)


# Accounts

class HealthInfoSerializer(serializers.Serializer):
    weight = serializers.FloatField(min_value=40, max_value=200, required=False)
    height = serializers.FloatField(min_value=140, max_value=220, required=False)
    hasDiseases = serializers.BooleanField(default=False)
    diseaseDetails = serializers.CharField(required=False, allow_blank=True)


class HospitalInfoSerializer(serializers.Serializer):
    licenseNumber = serializers.CharField(max_length=100)
    emergencyContact = serializers.CharField(required=False, allow_blank=True)

    def validate_licenseNumber(self, value):
        return value.strip().upper()


class AccountRegistrationSerializer(serializers.Serializer):
    role = None

    name = serializers.CharField(max_length=200)
    email = serializers.CharField(max_length=254)
    password = serializers.CharField(
        min_length=6, trim_whitespace=False, write_only=True,
        error_messages={'min_length': "Password must be at least 6 characters long"},
    )
    phone = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate_email(self, value):
        value = value.strip().lower()
        if not EMAIL_RE.match(value):
            raise serializers.ValidationError("Please provide a valid email address")
        return value

    def to_document(self):
        """The account document to insert, minus password hashing and timestamps."""
        data = dict(self.validated_data)
        data['role'] = self.role
        data['isActive'] = True
        data['history'] = []
        return data


class DonorRegistrationSerializer(AccountRegistrationSerializer):
    role = ROLE_DONOR

    phone = serializers.CharField()
    bloodType = serializers.ChoiceField(
        choices=BLOOD_TYPES,
        error_messages={'required': "Blood type is required for donors"},
    )
    healthInfo = HealthInfoSerializer(required=False)


class FacilityRegistrationSerializer(AccountRegistrationSerializer):
    phone = serializers.CharField()
    address = serializers.CharField()
    hospitalInfo = HospitalInfoSerializer(
        error_messages={'required': "License number is required for facilities"},
    )

    def to_document(self):
        data = super().to_document()
        data['status'] = FACILITY_PENDING if settings.REQUIRE_FACILITY_APPROVAL else FACILITY_APPROVED
        return data


class HospitalRegistrationSerializer(FacilityRegistrationSerializer):
    role = ROLE_HOSPITAL


class LabRegistrationSerializer(FacilityRegistrationSerializer):
    role = ROLE_LAB


class AdminRegistrationSerializer(AccountRegistrationSerializer):
    role = ROLE_ADMIN


REGISTRATION_SERIALIZERS = {
    ROLE_DONOR: DonorRegistrationSerializer,
    ROLE_HOSPITAL: HospitalRegistrationSerializer,
    ROLE_LAB: LabRegistrationSerializer,
    ROLE_ADMIN: AdminRegistrationSerializer,
}


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    phone = serializers.CharField(required=False)
    address = serializers.CharField(required=False)
    healthInfo = HealthInfoSerializer(required=False)
    emergencyContact = serializers.CharField(required=False, allow_blank=True)


# Blood stock

class BloodUnitCreateSerializer(serializers.Serializer):
    bloodType = serializers.ChoiceField(choices=BLOOD_TYPES)
    quantity = serializers.IntegerField(
        min_value=1, error_messages={'min_value': "Quantity must be greater than 0"},
    )
    collectionDate = DateOrDateTimeField(required=False)


class BloodUnitUpdateSerializer(serializers.Serializer):
    bloodType = serializers.ChoiceField(choices=BLOOD_TYPES, required=False)
    quantity = serializers.IntegerField(
        min_value=0, required=False,
        error_messages={'min_value': "Quantity cannot be negative"},
    )
    status = serializers.ChoiceField(choices=UNIT_STATUSES, required=False)
    collectionDate = DateOrDateTimeField(required=False)


class UseBloodSerializer(serializers.Serializer):
    usedQuantity = serializers.IntegerField(
        min_value=1, required=False, allow_null=True,
        error_messages={'min_value': "Used quantity must be at least 1"},
    )


# Camps

class CampAddressSerializer(serializers.Serializer):
    street = serializers.CharField()
    city = serializers.CharField()
    state = serializers.CharField()
    pincode = serializers.RegexField(
        PINCODE_RE, required=False,
        error_messages={'invalid': "Please enter a valid 6-digit pincode"},
    )


class CampSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    address = CampAddressSerializer()
    date = DateOrDateTimeField()
    endDate = DateOrDateTimeField(required=False)
    capacity = serializers.IntegerField(
        min_value=1, error_messages={'min_value': "Capacity must be at least 1"},
    )
    status = CampStatusField(required=False)

    # alternative names used by older clients
    ALIASES = {'name': 'title', 'expectedDonors': 'capacity', 'location': 'address'}

    def to_internal_value(self, data):
        if hasattr(data, 'items'):
            data = dict(data.items())
            for alias, field in self.ALIASES.items():
                if alias in data:
                    value = data.pop(alias)
                    data.setdefault(field, value)
            address = data.get('address')
            if isinstance(address, dict) and 'street' not in address:
                address = dict(address)
                street = address.pop('venue', None) or address.pop('address', None)
                if street is not None:
                    address['street'] = street
                data['address'] = address
        return super().to_internal_value(data)

    def validate(self, attrs):
        if not self.partial and 'endDate' not in attrs:
            duration = settings.CAMP_DEFAULT_DURATION_DAYS
            if duration is None:
                raise serializers.ValidationError({'endDate': "This field is required."})
            attrs['endDate'] = attrs['date'] + datetime.timedelta(days=duration)
        if 'date' in attrs and 'endDate' in attrs and attrs['endDate'] < attrs['date']:
            raise serializers.ValidationError({'endDate': "End date must not be before the start date"})
        return attrs


class CampStatusSerializer(serializers.Serializer):
    status = CampStatusField(
        error_messages={
            'invalid_choice': "Invalid status. Must be: Upcoming, Ongoing, Completed, or Cancelled",
        },
    )


# Blood requests

class BloodRequestCreateSerializer(serializers.Serializer):
    labId = serializers.CharField()
    bloodType = serializers.ChoiceField(choices=BLOOD_TYPES)
    units = serializers.IntegerField(
        min_value=1, error_messages={'min_value': "Units must be at least 1"},
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class ProcessRequestSerializer(serializers.Serializer):
    action = serializers.ChoiceField(
        choices=('accept', 'reject'),
        error_messages={'invalid_choice': "Invalid action. Must be 'accept' or 'reject'"},
    )


# Donations

class DonationSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(
        min_value=1, default=1, error_messages={'min_value': "Quantity must be greater than 0"},
    )
    bloodType = serializers.ChoiceField(choices=BLOOD_TYPES, required=False)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')


# Administration

class FacilityRejectionSerializer(serializers.Serializer):
    rejectionReason = serializers.CharField(
        error_messages={
            'required': "Rejection reason is required.",
            'blank': "Rejection reason is required.",
        },
    )
