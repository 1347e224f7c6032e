from rest_framework import serializers

from accounts.serializers import UserSerializer
from .models import Booking
from properties.models import Property


class BookingPropertySerializer(serializers.ModelSerializer):
    class Meta:
        model = Property
        fields = ["id", "title", "location", "city", "images", "status"]
        read_only_fields = fields


class BookingPartySerializer(UserSerializer):
    class Meta(UserSerializer.Meta):
        fields = ["id", "name", "email"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    property_detail = BookingPropertySerializer(source="property", read_only=True)
    tenant = BookingPartySerializer(read_only=True)
    owner = BookingPartySerializer(read_only=True)
    notes = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)

    class Meta:
        model = Booking
        fields = [
            "id", "property", "property_detail", "tenant", "owner",
            "start_date", "end_date", "total_price",
            "lease_duration", "monthly_rent", "total_rent",
            "security_deposit", "platform_fee", "total_amount",
            "notes", "status", "created_at", "updated_at",
        ]
        read_only_fields = [
            "id", "tenant", "owner",
            "lease_duration", "monthly_rent", "total_rent",
            "security_deposit", "platform_fee", "total_amount",
            "created_at", "updated_at",
        ]


class BookingCreateSerializer(serializers.Serializer):
    property = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    notes = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)

    def validate(self, attrs):
        if attrs["start_date"] >= attrs["end_date"]:
            raise serializers.ValidationError({"end_date": ["End date must be after start date."]})
        return attrs


class BookingUpdateSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    notes = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)


class DemoBookingSerializer(serializers.Serializer):
    property_id = serializers.IntegerField()
    move_in_date = serializers.DateField()
    lease_duration = serializers.IntegerField(min_value=1, max_value=120)
    monthly_rent = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    total_rent = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    security_deposit = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    platform_fee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
