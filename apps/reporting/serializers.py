from rest_framework import serializers

from . import services


class DashboardQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class ReportQuerySerializer(serializers.Serializer):
    """Query parameters for a period report."""

    report_type = serializers.ChoiceField(choices=services.REPORT_TYPES, default=services.SALES)
    date_range = serializers.ChoiceField(choices=services.DATE_RANGES, default=services.TODAY)
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)
    outlets = serializers.CharField(required=False, allow_blank=True)

    def validate_outlets(self, value):
        """Comma separated outlet ids, or "all"."""
        value = (value or "").strip()
        if not value or value.lower() == "all":
            return None
        field = serializers.UUIDField()
        return [field.to_internal_value(part.strip()) for part in value.split(",") if part.strip()]

    def validate(self, attrs):
        if attrs.get("date_range") == services.CUSTOM:
            if not attrs.get("start") or not attrs.get("end"):
                raise serializers.ValidationError("Custom ranges need both start and end.")
            if attrs["start"] > attrs["end"]:
                raise serializers.ValidationError("Start date must not be after end date.")
            if (attrs["end"] - attrs["start"]).days + 1 > services.MAX_CUSTOM_RANGE_DAYS:
                raise serializers.ValidationError(
                    f"Custom ranges cannot exceed {services.MAX_CUSTOM_RANGE_DAYS} days."
                )
        return attrs
