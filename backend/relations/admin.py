from django.contrib import admin

from .models import Relation


@admin.register(Relation)
class RelationAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "relation_type", "phone", "is_active")
    list_filter = ("relation_type", "is_active")
    search_fields = ("code", "name", "contact_person")
    ordering = ("code",)
