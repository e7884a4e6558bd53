from django.core.management.base import BaseCommand

from ledger_core.services.chart import seed_chart_of_accounts


class Command(BaseCommand):
    help = "Seeds the default chart of accounts (main groups, subgroups, role-tagged accounts)."

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE("Seeding chart of accounts..."))
        created = seed_chart_of_accounts()
        self.stdout.write(
            self.style.SUCCESS(
                "Created {main_groups} main groups, {subgroups} subgroups, "
                "{accounts} accounts.".format(**created)
            )
        )
