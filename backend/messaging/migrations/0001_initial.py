from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MessageLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("job_id", models.CharField(max_length=64, unique=True)),
                ("channel", models.CharField(choices=[("whatsapp", "WhatsApp"), ("email", "Email"), ("push", "Push")], default="whatsapp", max_length=16)),
                ("recipient", models.CharField(blank=True, db_index=True, max_length=254)),
                ("template_name", models.CharField(blank=True, max_length=128)),
                ("language", models.CharField(blank=True, max_length=16)),
                ("tracking_id", models.CharField(blank=True, max_length=512)),
                ("status", models.CharField(choices=[("QUEUED", "Queued"), ("SENT", "Sent"), ("DELIVERED", "Delivered"), ("READ", "Read"), ("FAILED", "Failed")], default="QUEUED", max_length=16)),
                ("provider_msg_id", models.CharField(blank=True, db_index=True, max_length=255)),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("error_code", models.CharField(blank=True, max_length=64)),
                ("error_title", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["channel", "status"], name="messaging_m_channel_5f0d1e_idx"),
                    models.Index(fields=["status", "updated_at"], name="messaging_m_status_8b7c2a_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("source", models.CharField(choices=[("whatsapp", "WhatsApp"), ("email", "Email")], max_length=16)),
                ("event", models.CharField(max_length=32)),
                ("external_event_id", models.CharField(max_length=255)),
                ("reference_id", models.CharField(blank=True, max_length=512)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("source", "external_event_id", "event"), name="uniq_webhook_event"),
                ],
            },
        ),
    ]
