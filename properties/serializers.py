from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Property

User = get_user_model()


class OwnerSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email"]
        read_only_fields = fields


class AmenitiesField(serializers.ListField):
    """
    Accepts a JSON list, repeated form fields, or a comma separated string
    ("wifi, parking") and normalizes it to a list of non-empty strings.
    """

    child = serializers.CharField(max_length=100)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [data]
        items = []
        for item in data if isinstance(data, (list, tuple)) else [data]:
            if isinstance(item, str):
                items.extend(part.strip() for part in item.split(","))
            else:
                items.append(item)
        return super().to_internal_value([item for item in items if item])


def validate_image_size(image):
    max_mb = settings.MAX_IMAGE_UPLOAD_MB
    if image.size > max_mb * 1024 * 1024:
        raise serializers.ValidationError(f"The image size must not exceed {max_mb}MB.")
    return image


class PropertySerializer(serializers.ModelSerializer):
    owner = OwnerSerializer(read_only=True)
    amenities = AmenitiesField(allow_empty=False)

    # Uploads (multipart). The stored URL list is rendered in to_representation.
    images = serializers.ListField(
        child=serializers.ImageField(validators=[validate_image_size]),
        required=False,
        write_only=True,
    )
    # On update: URLs of already stored images to keep, in display order
    existing_images = serializers.ListField(
        child=serializers.CharField(),
        required=False,
        write_only=True,
    )

    class Meta:
        model = Property
        fields = [
            "id", "title", "description", "price", "deposit",
            "location", "city", "property_type",
            "bedrooms", "bathrooms", "area", "furnishing",
            "amenities", "images", "existing_images",
            "owner", "status", "available_from", "created_at",
        ]
        read_only_fields = ["id", "owner", "created_at"]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["images"] = list(instance.images or [])
        return data

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("The price should be > 0.")
        return value

    def validate(self, attrs):
        uploads = attrs.get("images", [])
        if self.instance is None:
            if not uploads:
                raise serializers.ValidationError({"images": ["Please upload at least one image."]})
            kept = []
        else:
            kept = attrs.get("existing_images", self.instance.images or [])
            unknown = set(kept) - set(self.instance.images or [])
            if unknown:
                raise serializers.ValidationError({"existing_images": ["Unknown image URL(s)."]})

        total = len(kept) + len(uploads)
        if total == 0:
            raise serializers.ValidationError({"images": ["A property must keep at least one image."]})
        max_images = settings.MAX_PROPERTY_IMAGES
        if total > max_images:
            raise serializers.ValidationError({"images": [f"You can upload maximum {max_images} images."]})
        return attrs

    @property
    def image_store(self):
        return self.context["request"].services.image_store

    def create(self, validated_data):
        uploads = validated_data.pop("images", [])
        validated_data.pop("existing_images", None)
        validated_data["images"] = [self.image_store.save(f) for f in uploads]
        user = self.context["request"].user
        return Property.objects.create(owner=user, **validated_data)

    def update(self, instance, validated_data):
        uploads = validated_data.pop("images", [])
        kept = validated_data.pop("existing_images", None)
        previous = list(instance.images or [])
        if kept is None:
            kept = previous

        validated_data["images"] = list(kept) + [self.image_store.save(f) for f in uploads]
        prop = super().update(instance, validated_data)

        # files dropped from the list are no longer referenced anywhere
        removed = [url for url in previous if url not in prop.images]
        for url in removed:
            self.image_store.delete(url)
        return prop


class PropertyAvailabilitySerializer(PropertySerializer):
    is_booked = serializers.BooleanField(read_only=True)
    active_bookings = serializers.ListField(child=serializers.DictField(), read_only=True)

    class Meta(PropertySerializer.Meta):
        fields = PropertySerializer.Meta.fields + ["is_booked", "active_bookings"]


class DateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs["start_date"] >= attrs["end_date"]:
            raise serializers.ValidationError({"end_date": ["End date must be after start date."]})
        return attrs


class ReverseGeocodeSerializer(serializers.Serializer):
    # both lat/lon and latitude/longitude are accepted
    lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    lon = serializers.FloatField(required=False, min_value=-180, max_value=180)
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)

    def validate(self, attrs):
        lat = attrs.get("lat", attrs.get("latitude"))
        lon = attrs.get("lon", attrs.get("longitude"))
        if lat is None or lon is None:
            raise serializers.ValidationError("Please provide latitude and longitude.")
        return {"lat": lat, "lon": lon}


class ForwardGeocodeSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=500)
