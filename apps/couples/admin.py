from django.contrib import admin

from .models import Couple, User


class MemberInline(admin.TabularInline):
    """Inline admin for couple members."""
    model = User
    fk_name = 'couple'
    extra = 0
    fields = ['name', 'is_paired', 'partner', 'created_at']
    readonly_fields = ['name', 'is_paired', 'partner', 'created_at']

    def has_add_permission(self, request, obj=None):
        """Members are created by the pairing service."""
        return False


@admin.register(Couple)
class CoupleAdmin(admin.ModelAdmin):
    list_display = ['couple_code', 'created_by_user', 'member_count', 'created_at']
    search_fields = ['couple_code', 'members__name']
    readonly_fields = ['id', 'couple_code', 'created_by_user', 'created_at']
    inlines = [MemberInline]

    def member_count(self, obj):
        return obj.members.count()
    member_count.short_description = 'Members'


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """
    Admin interface for couple members.

    Pairing fields are read-only; use the ``repair_pairings`` command to fix
    half-completed pairings.
    """

    list_display = ['name', 'couple', 'is_paired', 'partner', 'created_at']
    list_filter = ['is_paired', 'created_at']
    search_fields = ['name', 'couple__couple_code']
    readonly_fields = ['id', 'couple', 'partner', 'is_paired', 'created_at']
    exclude = ['auth_token']
