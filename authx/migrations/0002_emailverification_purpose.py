from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("authx", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="emailverification",
            name="purpose",
            field=models.CharField(
                choices=[("signup", "Signup"), ("password_reset", "Password reset")],
                default="signup",
                max_length=32,
            ),
        ),
        migrations.AlterField(
            model_name="emailverification",
            name="email",
            field=models.EmailField(max_length=254),
        ),
        migrations.AddConstraint(
            model_name="emailverification",
            constraint=models.UniqueConstraint(fields=("email", "purpose"), name="uniq_verification_email_purpose"),
        ),
    ]
