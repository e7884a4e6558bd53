from django.core.management.base import BaseCommand

from ledger_core.tasks import recompute_account_balances


class Command(BaseCommand):
    help = "Rebuilds every account's running balance from posted vouchers."

    # Define command-line argument
    def add_arguments(self, parser):
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the job on the Celery worker instead of running it here",
        )

    def handle(self, *args, **options):
        if options["run_async"]:
            result = recompute_account_balances.delay()
            self.stdout.write(self.style.NOTICE(f"Queued balance recompute ({result.id})."))
            return

        corrected = recompute_account_balances()
        if corrected:
            self.stdout.write(
                self.style.WARNING(f"Corrected {len(corrected)} account(s): {', '.join(corrected)}")
            )
        else:
            self.stdout.write(self.style.SUCCESS("All running balances already match the ledger."))
