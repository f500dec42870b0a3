# accounting/serializers.py
"""
Serializers for accounting API.

Note: These serializers are used for:
1. Input validation
2. Output formatting

The actual business logic happens in commands.py.
"""

from rest_framework import serializers

from .models import Account, TransactionDetail, TransactionHeader


# =============================================================================
# Account Serializers
# =============================================================================

class AccountSerializer(serializers.ModelSerializer):
    """Serializer for Account model, used for listing and retrieving."""
    has_transactions = serializers.SerializerMethodField()
    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)

    class Meta:
        model = Account
        fields = [
            "id", "code", "name", "account_type", "subtype", "normal_balance",
            "parent", "parent_code", "opening_balance", "is_active",
            "has_transactions",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_has_transactions(self, obj):
        # Use annotated value if available (from list view), else query
        if hasattr(obj, "_has_transactions"):
            return obj._has_transactions
        return obj.transaction_details.exists()


class AccountCreateSerializer(serializers.Serializer):
    """Serializer for creating accounts via command."""
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices)
    subtype = serializers.ChoiceField(
        choices=Account.Subtype.choices, required=False, default=Account.Subtype.UMUM,
    )
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    opening_balance = serializers.DecimalField(
        max_digits=15, decimal_places=2, required=False, default=0,
    )
    is_active = serializers.BooleanField(required=False, default=True)


class AccountUpdateSerializer(serializers.Serializer):
    """Serializer for updating accounts via command."""
    code = serializers.CharField(max_length=20, required=False)
    name = serializers.CharField(max_length=255, required=False)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices, required=False)
    subtype = serializers.ChoiceField(choices=Account.Subtype.choices, required=False)
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    opening_balance = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    is_active = serializers.BooleanField(required=False)


# =============================================================================
# Transaction Serializers
# =============================================================================

class TransactionDetailSerializer(serializers.ModelSerializer):
    """Serializer for individual transaction details."""
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = TransactionDetail
        fields = [
            "id", "header", "line_no", "account", "account_code", "account_name",
            "description", "debit", "credit", "is_debit", "amount",
        ]
        read_only_fields = fields


class TransactionHeaderSerializer(serializers.ModelSerializer):
    """
    Full transaction serializer with nested details.
    Used for retrieval and display.
    """
    details = TransactionDetailSerializer(many=True, read_only=True)
    relation_name = serializers.CharField(source="relation.name", read_only=True, default=None)
    username = serializers.CharField(source="user.username", read_only=True)
    posted_by_username = serializers.CharField(source="posted_by.username", read_only=True, default=None)
    is_balanced = serializers.BooleanField(read_only=True)

    class Meta:
        model = TransactionHeader
        fields = [
            "id", "number", "date", "transaction_type", "description",
            "total_debit", "total_credit", "is_balanced",
            "relation", "relation_name", "user", "username",
            "is_posted", "posted_at", "posted_by", "posted_by_username",
            "created_at", "updated_at",
            "details",
        ]
        read_only_fields = fields


class TransactionListSerializer(serializers.ModelSerializer):
    """Lighter serializer for transaction listings (no details)."""
    relation_name = serializers.CharField(source="relation.name", read_only=True, default=None)
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = TransactionHeader
        fields = [
            "id", "number", "date", "transaction_type", "description",
            "total_debit", "total_credit", "relation", "relation_name",
            "user", "username", "is_posted", "posted_at", "created_at",
        ]
        read_only_fields = fields


class TransactionDetailInputSerializer(serializers.Serializer):
    """
    Detail line input (creation/update).

    Standardized contract: ALWAYS use account_id (integer).
    """
    account_id = serializers.IntegerField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    debit = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    credit = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    line_no = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate(self, attrs):
        debit = attrs.get("debit") or 0
        credit = attrs.get("credit") or 0
        if debit < 0 or credit < 0:
            raise serializers.ValidationError("Debit/Credit cannot be negative.")
        if debit > 0 and credit > 0:
            raise serializers.ValidationError("A line cannot have both debit and credit.")
        if debit == 0 and credit == 0:
            raise serializers.ValidationError("A line cannot have both debit and credit = 0.")
        return attrs


class TransactionDetailUpdateSerializer(serializers.Serializer):
    account_id = serializers.IntegerField(required=False)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    debit = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, min_value=0)
    credit = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, min_value=0)
    line_no = serializers.IntegerField(min_value=1, required=False)


class TransactionHeaderInputSerializer(serializers.Serializer):
    """Header fields for create (full) and update (partial=True)."""
    number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    date = serializers.DateField()
    transaction_type = serializers.ChoiceField(choices=TransactionHeader.TransactionType.choices)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    relation_id = serializers.IntegerField(required=False, allow_null=True)
    user_id = serializers.IntegerField(required=False, allow_null=True)


class TransactionCompleteInputSerializer(TransactionHeaderInputSerializer):
    """Header plus all of its details in one payload."""
    details = TransactionDetailInputSerializer(many=True)

    def validate_details(self, value):
        if not value:
            raise serializers.ValidationError("Transaction must have at least one detail.")
        return value


class NumberRequestSerializer(serializers.Serializer):
    transaction_type = serializers.ChoiceField(choices=TransactionHeader.TransactionType.choices)
    date = serializers.DateField(required=False)


class DateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs["start_date"] > attrs["end_date"]:
            raise serializers.ValidationError("start_date must not be after end_date.")
        return attrs


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=500, required=False)
