from __future__ import annotations

from datetime import timezone as dt_timezone

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from coursework.reminders import pending_student_ids, scan_deadline_reminders, upcoming_assignments


class Command(BaseCommand):
    help = "Email students who have not submitted assignments due within the next 24 hours."

    def add_arguments(self, parser):
        parser.add_argument(
            "--now",
            help="ISO timestamp to scan from instead of the current time.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List pending students per assignment without sending email.",
        )

    def handle(self, *args, **options):
        now = timezone.now()
        if options["now"]:
            now = parse_datetime(options["now"])
            if now is None:
                raise CommandError(f"Invalid --now timestamp: {options['now']}")
            if timezone.is_naive(now):
                now = timezone.make_aware(now, dt_timezone.utc)

        if options["dry_run"]:
            assignments = upcoming_assignments(now)
            for assignment in assignments:
                pending = pending_student_ids(assignment)
                self.stdout.write(f"{assignment.title}: {len(pending)} pending student(s)")
            self.stdout.write(
                self.style.WARNING(
                    f"Dry-run complete. {len(assignments)} assignment(s) due soon. "
                    "Re-run without --dry-run to send reminders."
                )
            )
            return

        scan = scan_deadline_reminders(now)
        if not scan.checked:
            self.stdout.write("No upcoming deadlines in the next 24 hours.")
            return
        for report in scan.reports:
            self.stdout.write(f"{report.assignment_title}: reminded {report.reminded_count} student(s)")
        message = (
            f"Reminded {scan.reminded_count} student(s) across {len(scan.reports)} assignment(s)."
        )
        if scan.failures:
            self.stdout.write(self.style.WARNING(f"{message} {scan.failures} assignment(s) failed."))
        else:
            self.stdout.write(self.style.SUCCESS(message))
