"""
Initial migration for Periodman models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Periodman models: ScheduledItem, Window."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ScheduledItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('owner_scope', models.CharField(db_index=True, help_text='Loja/sessão dona deste registro', max_length=255, verbose_name='Loja')),
                ('catalog_item_id', models.CharField(max_length=255, verbose_name='ID do Produto no Catálogo')),
                ('title', models.CharField(blank=True, help_text='Cópia do título do produto na última sincronização', max_length=255, verbose_name='Título')),
                ('needs_sync', models.BooleanField(db_index=True, default=False, verbose_name='Pendente de sincronização')),
                ('last_sync_error', models.TextField(blank=True, default='', verbose_name='Último erro de sincronização')),
                ('synced_at', models.DateTimeField(blank=True, null=True, verbose_name='Sincronizado em')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Período de Venda',
                'verbose_name_plural': 'Períodos de Venda',
                'ordering': ['-updated_at'],
            },
        ),
        migrations.CreateModel(
            name='Window',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('merchandise_id', models.CharField(max_length=255, verbose_name='ID da Variante')),
                ('label', models.CharField(blank=True, max_length=255, verbose_name='Variante')),
                ('start', models.DateField(verbose_name='Início')),
                ('end', models.DateField(verbose_name='Fim')),
                ('sort_order', models.PositiveIntegerField(default=0, verbose_name='Ordem')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='windows', to='periodman.scheduleditem', verbose_name='Período de Venda')),
            ],
            options={
                'verbose_name': 'Janela de Venda',
                'verbose_name_plural': 'Janelas de Venda',
                'ordering': ['sort_order', 'pk'],
            },
        ),
        migrations.AddConstraint(
            model_name='scheduleditem',
            constraint=models.UniqueConstraint(fields=('owner_scope', 'catalog_item_id'), name='unique_schedule_per_catalog_item'),
        ),
        migrations.AddConstraint(
            model_name='window',
            constraint=models.UniqueConstraint(fields=('item', 'merchandise_id'), name='unique_window_merchandise_per_item'),
        ),
        migrations.AddConstraint(
            model_name='window',
            constraint=models.CheckConstraint(condition=models.Q(('start__lte', models.F('end'))), name='window_start_not_after_end'),
        ),
    ]
