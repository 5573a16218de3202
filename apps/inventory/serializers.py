"""
Serializers for menu items and stock ledgers.
"""

from decimal import Decimal

from rest_framework import serializers

from .models import DistributionEntry, MasterStockEntry, MenuItem

QUANTITY_FIELD = {"max_digits": 10, "decimal_places": 2}


class MenuItemSerializer(serializers.ModelSerializer):
    """Serializer for MenuItem model."""

    class Meta:
        model = MenuItem
        fields = [
            "id",
            "name",
            "name_local",
            "category",
            "unit",
            "base_price",
            "image_url",
            "is_market_priced",
            "requires_daily_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value


class MasterStockEntrySerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source="item.name", read_only=True)

    class Meta:
        model = MasterStockEntry
        fields = [
            "id",
            "item",
            "item_name",
            "stock_date",
            "total_quantity",
            "daily_price",
            "unit",
            "created_by",
            "updated_at",
        ]
        read_only_fields = fields


class DistributionEntrySerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source="item.name", read_only=True)
    outlet_name = serializers.CharField(source="outlet.name", read_only=True)

    class Meta:
        model = DistributionEntry
        fields = [
            "id",
            "outlet",
            "outlet_name",
            "item",
            "item_name",
            "stock_date",
            "quantity",
            "unit",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class MasterStockLineSerializer(serializers.Serializer):
    item = serializers.UUIDField()
    quantity = serializers.DecimalField(**QUANTITY_FIELD)
    daily_price = serializers.DecimalField(
        required=False, allow_null=True, min_value=Decimal("0"), **QUANTITY_FIELD
    )


class MasterStockSaveSerializer(serializers.Serializer):
    """
    Absolute totals for a day.

    {"date": "2024-05-01", "entries": [{"item": "<uuid>", "quantity": "100", "daily_price": "450"}]}
    """

    date = serializers.DateField(required=False)
    entries = MasterStockLineSerializer(many=True, allow_empty=False)

    def validate_entries(self, value):
        seen = set()
        for line in value:
            if line["item"] in seen:
                raise serializers.ValidationError(f"Item {line['item']} appears more than once.")
            seen.add(line["item"])
        return value

    def as_mapping(self):
        return {
            line["item"]: (line["quantity"], line.get("daily_price"))
            for line in self.validated_data["entries"]
        }


class DistributionLineSerializer(serializers.Serializer):
    item = serializers.UUIDField()
    delta = serializers.DecimalField(**QUANTITY_FIELD)


class DistributionSaveSerializer(serializers.Serializer):
    """
    Signed adjustments for one outlet.

    {"outlet": "<uuid>", "date": "2024-05-01", "deltas": [{"item": "<uuid>", "delta": "-5"}]}
    """

    outlet = serializers.UUIDField()
    date = serializers.DateField(required=False)
    deltas = DistributionLineSerializer(many=True, allow_empty=False)

    def validate_deltas(self, value):
        seen = set()
        for line in value:
            if line["item"] in seen:
                raise serializers.ValidationError(f"Item {line['item']} appears more than once.")
            seen.add(line["item"])
        return value

    def as_mapping(self):
        return {line["item"]: line["delta"] for line in self.validated_data["deltas"]}


class StockOverviewQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    mode = serializers.ChoiceField(choices=["master", "distribution"], default="distribution")
    outlet = serializers.UUIDField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)


class LedgerQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    outlet = serializers.UUIDField(required=False)
