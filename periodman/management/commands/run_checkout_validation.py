"""
Management command to run the checkout validation on a function input.

Reads the cart validation input JSON (stdin or --input) and writes the
function result JSON, exactly as the checkout host would invoke it. Touches
no database.

Usage:
    python manage.py run_checkout_validation < input.json
    python manage.py run_checkout_validation --input input.json --date 2024-05-01
"""

import json
import sys

from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_date

from periodman.checkout import run
from periodman.conf import periodman_settings


class Command(BaseCommand):
    """Run checkout validation on a function input."""

    help = 'Valida um carrinho contra os períodos de venda publicados'

    def add_arguments(self, parser):
        parser.add_argument(
            '--input',
            default=None,
            help='Arquivo JSON de entrada (padrão: stdin)'
        )
        parser.add_argument(
            '--date',
            default=None,
            help='Data local da loja (AAAA-MM-DD), sobrepõe shop.localTime.date'
        )

    def handle(self, *args, **options):
        try:
            if options['input']:
                with open(options['input'], encoding='utf-8') as fh:
                    payload = json.load(fh)
            else:
                payload = json.load(sys.stdin)
        except (OSError, ValueError) as e:
            raise CommandError(f'Entrada inválida: {e}') from e

        shop_date = None
        if options['date']:
            try:
                shop_date = parse_date(options['date'])
            except ValueError:
                shop_date = None
            if shop_date is None:
                raise CommandError(f"Data inválida: {options['date']}")

        result = run(payload, shop_local_date=shop_date,
                     tz_name=periodman_settings.SHOP_TIMEZONE)
        self.stdout.write(json.dumps(result, ensure_ascii=False))
