from django.contrib import admin
from django.utils.html import format_html

from .models import Bet, BetStatus


@admin.register(Bet)
class BetAdmin(admin.ModelAdmin):
    """
    Admin interface for Bets.

    Bets are read-only here: lifecycle changes go through the services so
    transitions stay conditional and notifications are published.
    """

    list_display = [
        'title',
        'amount',
        'couple',
        'creator',
        'status_badge',
        'winner_option',
        'created_at',
    ]
    list_filter = ['status', 'created_at']
    search_fields = ['title', 'option_a', 'option_b', 'couple__couple_code', 'creator__name']
    date_hierarchy = 'created_at'
    readonly_fields = [field.name for field in Bet._meta.fields]

    def status_badge(self, obj):
        """Display bet status as colored badge."""
        colors = {
            BetStatus.PENDING: ('#E5C49A', '#2C1810'),
            BetStatus.ACTIVE: ('#6B8E5E', 'white'),
            BetStatus.CONCLUDED: ('#A47449', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False
