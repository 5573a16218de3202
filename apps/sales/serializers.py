"""
Serializers for the POS terminal and transaction history.
"""

from rest_framework import serializers

from .models import SaleLineItem, SaleTransaction


class CartItemSerializer(serializers.Serializer):
    """Item to add to or remove from the cart."""

    item = serializers.UUIDField()


class SettleSerializer(serializers.Serializer):
    payment_method = serializers.CharField(max_length=20)

    def validate_payment_method(self, value):
        value = value.strip().lower()
        if value not in dict(SaleTransaction.PAYMENT_METHOD_CHOICES):
            raise serializers.ValidationError(f"Unknown payment method '{value}'.")
        return value


class SaleLineItemSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source="item.name", read_only=True)
    unit = serializers.CharField(source="item.unit", read_only=True)

    class Meta:
        model = SaleLineItem
        fields = ["id", "item", "item_name", "unit", "quantity", "unit_price", "subtotal"]
        read_only_fields = fields


class SaleTransactionListSerializer(serializers.ModelSerializer):
    """Serializer for transaction list."""

    outlet_name = serializers.CharField(source="outlet.name", read_only=True)
    cashier_name = serializers.SerializerMethodField()
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = SaleTransaction
        fields = [
            "id",
            "outlet",
            "outlet_name",
            "cashier_name",
            "total_amount",
            "payment_method",
            "is_paid",
            "items_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_cashier_name(self, obj):
        if obj.created_by is None:
            return None
        return obj.created_by.full_name or obj.created_by.username

    def get_items_count(self, obj):
        return len(obj.items.all())


class SaleTransactionDetailSerializer(SaleTransactionListSerializer):
    """Serializer for transaction details with line items."""

    items = SaleLineItemSerializer(many=True, read_only=True)

    class Meta(SaleTransactionListSerializer.Meta):
        fields = SaleTransactionListSerializer.Meta.fields + ["paid_at", "items"]
        read_only_fields = fields


class TransactionQuerySerializer(serializers.Serializer):
    """Filters for the transaction list; "all" means no filter."""

    outlet = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)
    sort = serializers.ChoiceField(choices=["created_at", "total_amount"], default="created_at")
    order = serializers.ChoiceField(choices=["asc", "desc"], default="desc")

    def validate_outlet(self, value):
        value = (value or "").strip()
        if not value or value.lower() == "all":
            return None
        return serializers.UUIDField().to_internal_value(value)
