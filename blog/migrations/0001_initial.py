from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Blog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('slug', models.SlugField(blank=True, max_length=200, unique=True)),
                ('excerpt', models.TextField()),
                ('content', models.TextField(help_text='HTML content')),
                ('category', models.CharField(choices=[('Buttons', 'Buttons'), ('Zippers', 'Zippers'), ('Elastic', 'Elastic'), ('Cords', 'Cords'), ('Industry', 'Industry'), ('Tips', 'Tips'), ('Market Trends', 'Market Trends'), ('Product Updates', 'Product Updates')], default='Industry', max_length=30)),
                ('featured_image', models.CharField(blank=True, default='', max_length=500)),
                ('author', models.CharField(default='Shree Balaji Enterprises', max_length=100)),
                ('read_time', models.CharField(default='5 min read', max_length=30)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('published', 'Published')], default='draft', max_length=10)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('seo_title', models.CharField(blank=True, default='', max_length=200)),
                ('seo_description', models.CharField(blank=True, default='', max_length=300)),
                ('seo_keywords', models.CharField(blank=True, default='', max_length=300)),
                ('related_products', models.JSONField(blank=True, default=list)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-published_at', '-created_at'],
                'indexes': [models.Index(fields=['status', 'published_at'], name='blog_status_published_idx')],
            },
        ),
    ]
