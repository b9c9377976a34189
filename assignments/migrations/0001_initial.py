from django.db import migrations, models
import django.db.models.deletion
from django.conf import settings


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("courses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CourseRoleAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="role_assignment", to="courses.course")),
                ("coordinator", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="coordinated_courses", to=settings.AUTH_USER_MODEL)),
                ("deputy_dean", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="deputy_dean_courses", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["course__code"],
            },
        ),
        migrations.CreateModel(
            name="FacultyRoleAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("school", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="faculty_assignment", to="courses.school")),
                ("deputy_dean", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="faculty_assignments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["school__code"],
            },
        ),
    ]
