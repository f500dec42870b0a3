from rest_framework import serializers

from .models import Relation


class RelationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Relation
        fields = [
            "id", "code", "name", "relation_type", "address", "phone",
            "email", "tax_id", "contact_person", "is_active",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class RelationInputSerializer(serializers.Serializer):
    """Input for create (full) and update (partial=True)."""
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    relation_type = serializers.ChoiceField(choices=Relation.RelationType.choices)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    tax_id = serializers.CharField(max_length=30, required=False, allow_blank=True, allow_null=True)
    contact_person = serializers.CharField(max_length=150, required=False, allow_blank=True, allow_null=True)
    is_active = serializers.BooleanField(required=False)
