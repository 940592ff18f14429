import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Unit',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text="Display name of the unit, e.g. 'pcs', 'dozen', 'kg'", max_length=50, unique=True)),
                ('base_unit_symbol', models.CharField(db_index=True, help_text='Symbol of the base unit this unit converts to', max_length=50)),
                ('conversion_factor', models.PositiveBigIntegerField(default=1, help_text='How many base units one of this unit is worth')),
                ('is_base_unit', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Unit',
                'verbose_name_plural': 'Units',
                'ordering': ['base_unit_symbol', 'conversion_factor', 'name'],
                'constraints': [
                    models.UniqueConstraint(fields=('base_unit_symbol', 'conversion_factor'), name='unique_unit_conversion'),
                    models.CheckConstraint(condition=models.Q(('conversion_factor__gte', 1)), name='unit_conversion_factor_positive'),
                ],
            },
        ),
    ]
