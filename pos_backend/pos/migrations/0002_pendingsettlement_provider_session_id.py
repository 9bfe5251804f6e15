"""
MIGRATION: provider checkout session id on PendingSettlement
(return verification against the payment provider)
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("pos", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="pendingsettlement",
            name="provider_session_id",
            field=models.CharField(max_length=128, blank=True, default=""),
        ),
    ]
