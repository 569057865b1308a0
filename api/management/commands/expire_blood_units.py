from django.core.management.base import BaseCommand, CommandError

from api.db import get_db
from api.exceptions import NotFound
from api.inventory import expire_units
from api.utils import to_object_id


class Command(BaseCommand):
    help = "Mark available blood units whose expiration date has passed as expired."

    def add_arguments(self, parser):
        parser.add_argument('--facility', help="Only sweep units owned by this facility id")

    def handle(self, *args, **options):
        owner_id = None
        if options.get('facility'):
            try:
                owner_id = to_object_id(options['facility'], "Facility")
            except NotFound as exc:
                raise CommandError(str(exc.detail))

        count = expire_units(get_db(), owner_id)
        self.stdout.write(self.style.SUCCESS(f"Marked {count} blood unit(s) as expired"))
        return None
