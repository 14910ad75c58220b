from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('price', models.PositiveIntegerField(help_text='Base price in paise')),
                ('category', models.CharField(choices=[('Buttons', 'Buttons'), ('Zippers', 'Zippers'), ('Elastic', 'Elastic'), ('Cords', 'Cords'), ('Laces', 'Laces'), ('Accessories', 'Accessories')], db_index=True, max_length=50)),
                ('image', models.CharField(blank=True, default='', max_length=500)),
                ('status', models.CharField(choices=[('active', 'Active'), ('draft', 'Draft')], db_index=True, default='active', max_length=10)),
                ('sizes', models.JSONField(blank=True, default=list)),
                ('colors', models.JSONField(blank=True, default=list)),
                ('packs', models.JSONField(blank=True, default=list)),
                ('in_stock', models.BooleanField(default=False, editable=False)),
                ('stock_qty', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('variant_pricing', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'category'], name='catalog_prod_status_cat_idx')],
            },
        ),
    ]
