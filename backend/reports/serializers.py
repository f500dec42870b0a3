from rest_framework import serializers

from .exports import REPORT_EXPORTS, ExportFormat
from .services import ReportFilter


class ReportFilterSerializer(serializers.Serializer):
    """Query parameters shared by every report."""
    from_date = serializers.DateField(required=False, allow_null=True)
    to_date = serializers.DateField(required=False, allow_null=True)
    account_id = serializers.IntegerField(required=False, allow_null=True)
    relation_id = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        from_date = attrs.get("from_date")
        to_date = attrs.get("to_date")
        if from_date and to_date and from_date > to_date:
            raise serializers.ValidationError("from_date must not be after to_date.")
        return attrs

    def to_filter(self) -> ReportFilter:
        return ReportFilter(**self.validated_data)


class AsOfSerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False)
    relation_id = serializers.IntegerField(required=False, allow_null=True)


class ExportRequestSerializer(ReportFilterSerializer):
    report = serializers.ChoiceField(choices=sorted(REPORT_EXPORTS))
    format = serializers.ChoiceField(choices=ExportFormat.CHOICES)
