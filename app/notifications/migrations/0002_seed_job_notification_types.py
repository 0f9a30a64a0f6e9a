"""
Seed the notification types used by the job hiring flow.

Template placeholders are filled by jobs.services.notifications:
job_title, company_suffix (" at <company>" or ""), applicant_name, amount.
"""

from django.db import migrations

JOB_NOTIFICATION_TYPES = [
    {
        "key": "job_application_submitted",
        "display_name": "Application Submitted",
        "title_template": "Application Submitted",
        "body_template": 'Your application for "{job_title}"{company_suffix} has been submitted successfully.',
    },
    {
        "key": "job_application_received",
        "display_name": "New Application Received",
        "title_template": "New Application Received",
        "body_template": '{applicant_name} applied for "{job_title}".',
    },
    {
        "key": "job_application_accepted",
        "display_name": "Application Accepted",
        "title_template": "You've Been Hired!",
        "body_template": 'Congratulations! You\'ve been hired for "{job_title}"{company_suffix}.',
    },
    {
        "key": "job_application_rejected",
        "display_name": "Application Rejected",
        "title_template": "Application Update",
        "body_template": 'Your application for "{job_title}"{company_suffix} was not selected.',
    },
    {
        "key": "job_deposit_paid",
        "display_name": "Deposit Paid",
        "title_template": "Deposit Payment Received",
        "body_template": (
            'The employer has paid the deposit (${amount}) for "{job_title}". You can now begin work!'
        ),
    },
    {
        "key": "job_final_payment_paid",
        "display_name": "Final Payment Paid",
        "title_template": "Final Payment Received",
        "body_template": 'Final payment (${amount}) has been received for "{job_title}".',
    },
    {
        "key": "job_completed",
        "display_name": "Job Completed",
        "title_template": "Job Marked as Complete",
        "body_template": (
            'The contractor has marked "{job_title}" as complete. Please complete the final payment.'
        ),
    },
]


def seed_types(apps, schema_editor):
    NotificationType = apps.get_model("notifications", "NotificationType")
    for definition in JOB_NOTIFICATION_TYPES:
        NotificationType.objects.update_or_create(
            key=definition["key"],
            defaults={**definition, "category": "jobs", "is_active": True},
        )


def remove_types(apps, schema_editor):
    NotificationType = apps.get_model("notifications", "NotificationType")
    NotificationType.objects.filter(key__in=[d["key"] for d in JOB_NOTIFICATION_TYPES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_types, remove_types),
    ]
