from django.core.management.base import BaseCommand

from orders.services import expire_stale_orders


class Command(BaseCommand):
    help = "Cancel unpaid UPI orders whose payment window has lapsed (same sweep the order read paths run)"

    def handle(self, *args, **options):
        count = expire_stale_orders()
        self.stdout.write(self.style.SUCCESS(f"Cancelled {count} stale order(s)"))
