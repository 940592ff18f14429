import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('measurements', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='StockTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('transaction_type', models.CharField(choices=[('ADD', 'Stock Added'), ('REMOVE', 'Stock Removed'), ('ADJUST', 'Stock Adjusted')], max_length=10)),
                ('quantity_in_base_unit', models.PositiveBigIntegerField(help_text='Magnitude of the change in base units')),
                ('quantity_change', models.BigIntegerField(help_text='Signed change in base units (positive for additions, negative for removals)')),
                ('previous_quantity', models.BigIntegerField(help_text='Stock in base units before the entry')),
                ('new_quantity', models.BigIntegerField(help_text='Stock in base units after the entry')),
                ('original_quantity', models.BigIntegerField(help_text='Quantity as entered, in the recording unit (the target for adjustments)')),
                ('original_conversion_factor', models.PositiveBigIntegerField(help_text='Conversion factor of the recording unit when the entry was written')),
                ('timestamp', models.DateTimeField(db_index=True)),
                ('notes', models.TextField(blank=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_transactions', to='catalog.product')),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_transactions', to='measurements.unit')),
            ],
            options={
                'verbose_name': 'Stock Transaction',
                'verbose_name_plural': 'Stock Transactions',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['product', 'timestamp'], name='stock_txn_product_time_idx'),
                    models.Index(fields=['transaction_type', 'timestamp'], name='stock_txn_type_time_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('new_quantity__gte', 0)), name='stock_txn_new_quantity_non_negative'),
                ],
            },
        ),
    ]
