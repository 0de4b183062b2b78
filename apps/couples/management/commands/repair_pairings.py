"""
Management command to repair half-completed pairings.

A join or unlink that stopped between its two user writes leaves one user
pointing at a partner that does not point back. This scans every couple
and re-symmetrizes the partner links.

Usage:
    python manage.py repair_pairings
    python manage.py repair_pairings --dry-run
"""

from django.core.management.base import BaseCommand

from apps.couples.models import Couple
from apps.couples.services import (
    PairingStateError,
    check_pairing_consistency,
    repair_couple_pairing,
)


class Command(BaseCommand):
    help = 'Find and repair inconsistent partner links in all couples'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be repaired without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        broken = []
        for couple in Couple.objects.prefetch_related('members').order_by('created_at'):
            problems = []
            for member in couple.members.all():
                try:
                    check_pairing_consistency(member)
                except PairingStateError as e:
                    problems.append((member, e))
            if problems:
                broken.append((couple, problems))

        if not broken:
            self.stdout.write(
                self.style.SUCCESS('No inconsistent pairings found. All good!')
            )
            return

        self.stdout.write(f'\nFound {len(broken)} couple(s) with inconsistent pairings:\n')

        for couple, problems in broken:
            self.stdout.write(f'  Couple {couple.couple_code}:')
            for member, error in problems:
                self.stdout.write(f'    - {member.name} ({member.id}): {error}')

        if dry_run:
            self.stdout.write(
                self.style.WARNING('\n--dry-run mode: No changes made.')
            )
            return

        fixed = 0
        for couple, _ in broken:
            fixed += repair_couple_pairing(couple_id=couple.id)

        self.stdout.write(
            self.style.SUCCESS(f'\nRepaired {fixed} user(s) in {len(broken)} couple(s).')
        )
