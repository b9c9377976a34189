from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("SUBMISSION_CREATED", "Submission created"),
                            ("SUBMISSION_UPDATED", "Submission updated"),
                            ("SUBMISSION_SUBMITTED", "Submission submitted for review"),
                            ("SUBMISSION_DELETED", "Submission deleted"),
                            ("SUBMISSION_REASSIGNED", "Submission reassigned"),
                            ("DOCUMENT_UPLOADED", "Document uploaded"),
                            ("DOCUMENT_NOT_APPLICABLE", "Document marked not applicable"),
                            ("DOCUMENT_DELETED", "Document deleted"),
                            ("COORDINATOR_APPROVED", "Coordinator approved"),
                            ("COORDINATOR_REJECTED", "Coordinator rejected"),
                            ("DEAN_ENDORSED", "Deputy dean endorsed"),
                            ("DEPUTY_DEAN_REJECTED", "Deputy dean rejected"),
                            ("COURSE_ASSIGNMENT_CHANGED", "Course assignment changed"),
                            ("COURSE_ASSIGNMENT_TOGGLED", "Course assignment toggled"),
                            ("COURSE_ASSIGNMENT_DELETED", "Course assignment deleted"),
                            ("FACULTY_ASSIGNMENT_CHANGED", "Faculty assignment changed"),
                            ("FACULTY_ASSIGNMENT_TOGGLED", "Faculty assignment toggled"),
                            ("FACULTY_ASSIGNMENT_DELETED", "Faculty assignment deleted"),
                            ("PRIVILEGE_GRANTED", "Privilege granted"),
                            ("PRIVILEGE_REVOKED", "Privilege revoked"),
                            ("USER_CREATED", "User created"),
                            ("USER_UPDATED", "User updated"),
                            ("USER_DELETED", "User deleted"),
                            ("SCHOOL_CREATED", "School created"),
                            ("SCHOOL_UPDATED", "School updated"),
                            ("SCHOOL_DELETED", "School deleted"),
                            ("SESSION_CREATED", "Session created"),
                            ("SESSION_UPDATED", "Session updated"),
                            ("SESSION_DELETED", "Session deleted"),
                            ("COURSE_CREATED", "Course created"),
                            ("COURSE_UPDATED", "Course updated"),
                            ("COURSE_DELETED", "Course deleted"),
                        ],
                        db_index=True,
                        max_length=64,
                    ),
                ),
                ("subject_type", models.CharField(db_index=True, max_length=64)),
                ("subject_id", models.CharField(blank=True, max_length=64)),
                ("actor_username", models.CharField(blank=True, max_length=150)),
                ("details", models.JSONField(blank=True, default=dict)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "audit log entries",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["subject_type", "subject_id"], name="audit_subject_idx")],
            },
        ),
    ]
