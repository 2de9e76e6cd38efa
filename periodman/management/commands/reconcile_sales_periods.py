"""
Management command to republish sales periods from the record store.

Usage:
    python manage.py reconcile_sales_periods
    python manage.py reconcile_sales_periods --all --owner padaria.myshopify.com
    python manage.py reconcile_sales_periods --dry-run
    python manage.py reconcile_sales_periods --retract gid://shopify/Product/1
"""

from django.core.management.base import BaseCommand

from periodman.services.reconciliation import reconcile, retract_orphans


class Command(BaseCommand):
    """Reconcile published documents with the record store."""

    help = 'Republica períodos de venda pendentes na loja'

    def add_arguments(self, parser):
        parser.add_argument(
            '--all',
            action='store_true',
            help='Republica todos os períodos, não só os pendentes'
        )
        parser.add_argument(
            '--owner',
            default=None,
            help='Limita a uma loja'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Mostra o que seria republicado sem executar'
        )
        parser.add_argument(
            '--retract',
            nargs='+',
            default=None,
            metavar='CATALOG_ITEM_ID',
            help='Remove documentos órfãos (sem período no banco)'
        )

    def handle(self, *args, **options):
        if options['retract']:
            report = retract_orphans(options['retract'], owner_scope=options['owner'])
            self.stdout.write(
                self.style.SUCCESS(f'{len(report.done)} documento(s) removido(s)')
            )
            for catalog_item_id in report.skipped:
                self.stdout.write(f'{catalog_item_id}: ainda possui período, ignorado')
        else:
            report = reconcile(
                owner_scope=options['owner'],
                pending_only=not options['all'],
                dry_run=options['dry_run'],
            )
            if options['dry_run']:
                self.stdout.write(f'{len(report.done)} período(s) seria(m) republicado(s)')
            else:
                self.stdout.write(
                    self.style.SUCCESS(f'{len(report.done)} período(s) republicado(s)')
                )

        for catalog_item_id, reason in report.failed.items():
            self.stderr.write(self.style.ERROR(f'{catalog_item_id}: {reason}'))
