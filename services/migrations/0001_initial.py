import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Service',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('category', models.CharField(choices=[('printing', 'Printing Services'), ('certificates', 'Government Certificates'), ('bills', 'Bill Payments'), ('mp_online', 'CSC Services')], max_length=20)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('icon', models.CharField(blank=True, max_length=50, null=True)),
                ('price_per_copy', models.BooleanField(default=False)),
                ('custom_fields', models.JSONField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('show_upload_section', models.BooleanField(default=True)),
                ('show_completed_section', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['category', 'name'],
                'indexes': [models.Index(fields=['is_active', 'category'], name='service_active_category_idx')],
            },
        ),
    ]
