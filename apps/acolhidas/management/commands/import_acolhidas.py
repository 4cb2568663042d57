"""Import participants from a CSV file into the record store."""
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from apps.acolhidas.csv_import import CSVImportError, parse_acolhidas_csv
from apps.store.client import RecordStoreError, get_record_store


class Command(BaseCommand):
    help = (
        "Import participants from a CSV file (columns name, startDate, groups; "
        "optional cpf, phone, email, observations)."
    )

    def add_arguments(self, parser):
        parser.add_argument("path", help="Path to the CSV file (UTF-8).")
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Parse and report without writing to the record store.",
        )

    def handle(self, *args, **options):
        path = Path(options["path"])
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise CommandError(f"Could not read {path}: {exc}")

        try:
            result = parse_acolhidas_csv(text)
        except CSVImportError as exc:
            raise CommandError(str(exc))

        for line_number, reason in result.skipped:
            self.stdout.write(self.style.WARNING(f"  Line {line_number} skipped: {reason}"))

        if options["dry_run"]:
            for draft in result.drafts:
                self.stdout.write(f"  Would import: {draft.name}")
            self.stdout.write(self.style.SUCCESS(
                f"Dry run. {len(result.drafts)} participant(s) would be imported."
            ))
            return

        try:
            created = get_record_store().insert_many(result.drafts)
        except RecordStoreError as exc:
            raise CommandError(f"Import failed: {exc}")
        for participant in created:
            self.stdout.write(f"  Imported: {participant.name}")
        self.stdout.write(self.style.SUCCESS(f"Done. {len(created)} participant(s) imported."))
