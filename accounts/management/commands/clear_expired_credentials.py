from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from accounts.models import User


class Command(BaseCommand):
    help = "Clears expired e-mail verification codes and temporary passwords."

    def add_arguments(self, parser):
        parser.add_argument(
            "--batch-size",
            type=int,
            default=500,
            help="Bulk size of the update (default 500).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what will be done without actually updating.",
        )

    def handle(self, *args, **options):
        batch_size = options["batch_size"]
        dry_run = options["dry_run"]

        now = timezone.now()
        expired_otp = Q(otp_expires__lt=now)
        expired_temp = Q(temp_password_expires__lt=now)
        qs = User.objects.filter(expired_otp | expired_temp)

        total = qs.count()
        if total == 0:
            self.stdout.write(self.style.SUCCESS("No expired credentials."))
            return

        self.stdout.write(f"Found {total} users with expired credentials.")

        if dry_run:
            sample = list(qs.order_by("id").values_list("id", "email")[:10])
            self.stdout.write(f"[DRY RUN] Example of the first 10: {sample}")
            self.stdout.write(self.style.WARNING("Dry run: no updates performed."))
            return

        updated = 0
        while True:
            ids = list(qs.order_by("id").values_list("id", flat=True)[:batch_size])
            if not ids:
                break
            with transaction.atomic():
                for user in User.objects.select_for_update().filter(id__in=ids):
                    fields = []
                    if user.otp_expires and user.otp_expires < now:
                        user.clear_otp()
                        fields += ["otp_hash", "otp_expires"]
                    if user.temp_password_expires and user.temp_password_expires < now:
                        user.clear_temp_password()
                        fields += ["temp_password_hash", "temp_password_expires"]
                    if fields:
                        user.save(update_fields=fields)
                        updated += 1
            self.stdout.write(f"Processed {updated}/{total} ...")

        self.stdout.write(self.style.SUCCESS(f"Done. Cleared credentials of {updated} users."))
