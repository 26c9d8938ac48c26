import json

from django.core.management.base import BaseCommand

from surveillance.models import SyncRun
from surveillance.sources import build_session
from surveillance.store import SurveillanceStore
from surveillance.sync import run_sync


class Command(BaseCommand):
    help = "Fetch wastewater, clinical and rougeole data and upsert it into the database."

    def add_arguments(self, parser):
        parser.add_argument(
            "--departments",
            type=str,
            default=None,
            help="Comma-separated department codes to sync clinical data for, besides national "
                 "(default: SURVEILLANCE_CLINICAL_DEPARTMENTS)",
        )
        parser.add_argument(
            "--skip-rougeole",
            action="store_true",
            help="Do not sync rougeole notifications",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            default=None,
            help="HTTP timeout in seconds for wastewater and clinical sources",
        )

    def handle(self, *args, **options):
        departments = None
        if options["departments"] is not None:
            departments = [d.strip() for d in options["departments"].split(",") if d.strip()]

        session = build_session()
        try:
            result = run_sync(
                SurveillanceStore(),
                session,
                timeout=options["timeout"],
                departments=departments,
                include_rougeole=False if options["skip_rougeole"] else None,
            )
        finally:
            session.close()

        summary = json.dumps(result.as_dict(), ensure_ascii=False)
        if result.status == SyncRun.SUCCESS:
            self.stdout.write(self.style.SUCCESS(f"Sync {result.status}: {summary}"))
        else:
            for error in result.errors:
                self.stderr.write(error)
            self.stdout.write(self.style.WARNING(f"Sync {result.status}: {summary}"))
