"""Role resolution for a user against a course.

`resolve_roles` combines the user's global privileges with the course and
faculty assignments and returns a `RoleSet`. Absence of any matching
assignment yields an empty set; callers treat that as denial.

Deputy dean resolution falls back to the school's faculty assignment only
when no active course assignment carries a deputy dean.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from accounts.models import Privilege, privileges_for
from courses.models import Course

from .models import CourseRoleAssignment, FacultyRoleAssignment


@dataclass(frozen=True)
class RoleSet:
    """Immutable set of roles held by a user on one course."""

    roles: frozenset[Privilege] = frozenset()

    @classmethod
    def of(cls, roles: Iterable[Privilege]) -> "RoleSet":
        return cls(frozenset(Privilege(r) for r in roles))

    def __contains__(self, role) -> bool:
        return Privilege(role) in self.roles

    def __iter__(self) -> Iterator[Privilege]:
        return iter(sorted(self.roles))

    def __len__(self) -> int:
        return len(self.roles)

    def __bool__(self) -> bool:
        return bool(self.roles)

    @property
    def is_admin(self) -> bool:
        return Privilege.ADMIN in self.roles

    @property
    def is_coordinator(self) -> bool:
        return Privilege.COORDINATOR in self.roles

    @property
    def is_deputy_dean(self) -> bool:
        return Privilege.DEPUTY_DEAN in self.roles


EMPTY = RoleSet()


def _active_course_assignment(course: Course) -> CourseRoleAssignment | None:
    return CourseRoleAssignment.objects.filter(course=course, active=True).first()


def resolve_coordinator(course: Course):
    """Return the active coordinator for `course`, or None."""
    assignment = _active_course_assignment(course)
    return assignment.coordinator if assignment else None


def resolve_deputy_dean(course: Course):
    """Return the deputy dean for `course`, falling back to its school.

    The school's deputy dean is skipped when they also coordinate the
    course, so one person never both approves and endorses.
    """
    assignment = _active_course_assignment(course)
    if assignment and assignment.deputy_dean_id:
        return assignment.deputy_dean
    faculty = FacultyRoleAssignment.objects.filter(school_id=course.school_id, active=True).first()
    if faculty is None or faculty.deputy_dean_id is None:
        return None
    if assignment and assignment.coordinator_id == faculty.deputy_dean_id:
        return None
    return faculty.deputy_dean


def resolve_roles(user, course: Course | None) -> RoleSet:
    if not getattr(user, "is_authenticated", False):
        return EMPTY
    roles: set[Privilege] = set()
    if Privilege.ADMIN in privileges_for(user):
        roles.add(Privilege.ADMIN)
    if course is None:
        return RoleSet.of(roles)
    coordinator = resolve_coordinator(course)
    if coordinator is not None and coordinator.pk == user.pk:
        roles.add(Privilege.COORDINATOR)
    dean = resolve_deputy_dean(course)
    if dean is not None and dean.pk == user.pk:
        roles.add(Privilege.DEPUTY_DEAN)
    return RoleSet.of(roles)


def coordinator_course_ids(user) -> set[int]:
    """Ids of courses the user actively coordinates."""
    if not getattr(user, "is_authenticated", False):
        return set()
    return set(
        CourseRoleAssignment.objects.filter(coordinator=user, active=True).values_list("course_id", flat=True)
    )


def deputy_dean_course_ids(user) -> set[int]:
    """Ids of courses the user is deputy dean for, directly or through a school."""
    if not getattr(user, "is_authenticated", False):
        return set()
    direct = set(
        CourseRoleAssignment.objects.filter(deputy_dean=user, active=True).values_list("course_id", flat=True)
    )
    school_ids = list(
        FacultyRoleAssignment.objects.filter(deputy_dean=user, active=True).values_list("school_id", flat=True)
    )
    if not school_ids:
        return direct
    # Courses whose own active assignment names a deputy dean do not fall
    # back, nor do courses the user coordinates.
    overridden = CourseRoleAssignment.objects.filter(active=True, deputy_dean__isnull=False)
    coordinated = CourseRoleAssignment.objects.filter(active=True, coordinator=user)
    fallback = set(
        Course.objects.filter(school_id__in=school_ids)
        .exclude(pk__in=overridden.values("course_id"))
        .exclude(pk__in=coordinated.values("course_id"))
        .values_list("pk", flat=True)
    )
    return direct | fallback

