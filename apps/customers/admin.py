"""Admin registrations for clients and employees."""

from __future__ import annotations

from django.contrib import admin

from .models import Client, Employee


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "document_number", "email", "phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("first_name", "last_name", "document_number", "email")
    readonly_fields = ("created_at", "updated_at")


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "email", "position", "is_active")
    list_filter = ("is_active", "position")
    search_fields = ("first_name", "last_name", "email")
    raw_id_fields = ("user",)
