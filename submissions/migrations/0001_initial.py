from django.db import migrations, models
import django.db.models.deletion
import django_fsm
from django.conf import settings

import submissions.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("courses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Submission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type_of_study", models.CharField(choices=[("UNDERGRADUATE", "Undergraduate"), ("POSTGRADUATE", "Postgraduate")], max_length=16)),
                ("title", models.CharField(blank=True, max_length=200)),
                ("status", django_fsm.FSMField(choices=[("DRAFT", "Draft"), ("SUBMITTED", "Submitted"), ("COORDINATOR_APPROVED", "Approved by coordinator"), ("DEAN_ENDORSED", "Endorsed by deputy dean"), ("REJECTED", "Rejected")], db_index=True, default="DRAFT", max_length=50)),
                ("rejection_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("coordinator_approved_at", models.DateTimeField(blank=True, null=True)),
                ("dean_endorsed_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="submissions", to="courses.course")),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="submissions", to="courses.academicsession")),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="submissions", to=settings.AUTH_USER_MODEL)),
                ("current_assignee", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="assigned_submissions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["course", "status"], name="submission_course_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Document",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_type", models.CharField(choices=[("QP004_TEST_SPEC", "Test specification table"), ("QP004_FINAL_QUESTION", "Final examination question paper"), ("QP004_FINAL_ANSWER", "Final examination answer scheme"), ("QP005_APPOINTMENT", "Appointment letter"), ("QP005_SCHEDULE", "Teaching schedule"), ("QP005_SYLLABUS", "Syllabus"), ("QP005_SOW", "Scheme of work"), ("QP005_MIDSEM_QUESTION", "Mid-semester question paper"), ("QP005_MIDSEM_ANSWER", "Mid-semester answer scheme"), ("QP005_ASSIGNMENT", "Assignment"), ("QP005_TUTORIAL", "Tutorial"), ("QP005_QUIZ", "Quiz"), ("QP005_AOL", "Assurance of learning")], max_length=32)),
                ("file", models.FileField(blank=True, upload_to=submissions.models.document_upload_to)),
                ("file_name", models.CharField(blank=True, max_length=255)),
                ("size_bytes", models.PositiveBigIntegerField(default=0)),
                ("mime", models.CharField(blank=True, max_length=100)),
                ("not_applicable", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("submission", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="documents", to="submissions.submission")),
                ("uploaded_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["submission_id", "document_type"],
                "unique_together": {("submission", "document_type")},
            },
        ),
    ]
