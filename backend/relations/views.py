from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from .commands import create_relation, delete_relation, update_relation
from .models import Relation
from .serializers import RelationInputSerializer, RelationSerializer


class RelationListCreateView(APIView):
    """
    GET /api/relations/ -> list relations
        ?type=PELANGGAN  filter by relation type
        ?active=true     active relations only
    POST /api/relations/ -> create relation
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "relations.view")

        relations = Relation.objects.all()
        relation_type = request.query_params.get("type")
        if relation_type:
            if relation_type not in Relation.RelationType.values:
                raise ValidationError({"type": f"Invalid relation type: {relation_type}"})
            relations = relations.filter(relation_type=relation_type)
        if request.query_params.get("active", "").lower() == "true":
            relations = relations.filter(is_active=True)

        return Response(RelationSerializer(relations, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = RelationInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_relation(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RelationSerializer(result.data).data, status=status.HTTP_201_CREATED)


class RelationDetailView(APIView):
    """GET/PATCH/DELETE /api/relations/<pk>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "relations.view")
        return Response(RelationSerializer(get_object_or_404(Relation, pk=pk)).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Relation, pk=pk)

        serializer = RelationInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_relation(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RelationSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Relation, pk=pk)

        result = delete_relation(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)
