"""
Authorization policies.

Each policy looks only at the principal and rows already loaded by the
caller and returns an AccessDecision. Routers and services call
``enforce`` so every refusal is raised the same way.
"""

from typing import NamedTuple, Optional

from brizzle.auth.auth_context import AuthContext
from brizzle.errors import Forbidden, NotFound


class AccessDecision(NamedTuple):
    allowed: bool
    status: int = 200
    reason: str = ""


ALLOW = AccessDecision(True)


def deny(reason: str, status: int = 403) -> AccessDecision:
    return AccessDecision(False, status, reason)


def enforce(decision: AccessDecision):
    """Raise the error matching a denied decision"""
    if decision.allowed:
        return
    if decision.status == 404:
        raise NotFound(decision.reason)
    raise Forbidden(decision.reason)


def _owns_course(principal: AuthContext, course: Optional[dict]) -> bool:
    return course is not None and course.get("creator_id") == principal.user_id


# ==================== ENROLLMENTS & ASSIGNMENTS ====================

def can_enroll(principal: AuthContext, course: Optional[dict]) -> AccessDecision:
    if not principal.is_teacher:
        return deny("Access denied. Teacher privileges required.")
    if course is None:
        return deny("Course not found", 404)
    if not _owns_course(principal, course):
        return deny("Not authorized to enroll students in this course")
    return ALLOW


def can_assign(principal: AuthContext, enrollment: Optional[dict], course: Optional[dict]) -> AccessDecision:
    if not principal.is_teacher:
        return deny("Access denied. Teacher privileges required.")
    if enrollment is None:
        return deny("Enrollment not found", 404)
    if not _owns_course(principal, course):
        return deny("Not authorized to manage this enrollment")
    return ALLOW


def can_unassign(principal: AuthContext, assignment: Optional[dict], course: Optional[dict]) -> AccessDecision:
    if assignment is None:
        return deny("Assignment not found", 404)
    if not principal.is_teacher or not _owns_course(principal, course):
        return deny("Not authorized to remove this assignment")
    return ALLOW


def can_read_enrollment(principal: AuthContext, enrollment: Optional[dict], course: Optional[dict]) -> AccessDecision:
    """Owner teacher of the course, or the enrolled student"""
    if enrollment is None:
        return deny("Enrollment not found", 404)
    if principal.is_teacher and _owns_course(principal, course):
        return ALLOW
    if principal.is_student and enrollment.get("student_id") == principal.user_id:
        return ALLOW
    return deny("Not authorized to access this enrollment")


# ==================== PROGRESS ====================

def can_record_progress(principal: AuthContext, assignment: Optional[dict], enrollment: Optional[dict]) -> AccessDecision:
    if not principal.is_student:
        return deny("Access denied. Student account required.")
    if assignment is None:
        return deny("Assignment not found", 404)
    if enrollment is None or enrollment.get("student_id") != principal.user_id:
        return deny("This assignment does not belong to you")
    return ALLOW


def can_read_vocabulary(principal: AuthContext, student_id: str) -> AccessDecision:
    if student_id == principal.user_id or principal.is_teacher:
        return ALLOW
    return deny("Only teachers can view other students' progress")


# ==================== RESOURCES & DOCUMENTS ====================

def can_manage_resource(principal: AuthContext, resource: Optional[dict]) -> AccessDecision:
    if resource is None:
        return deny("Resource not found", 404)
    if not principal.is_teacher or resource.get("creator_id") != principal.user_id:
        return deny("Not authorized to access this resource")
    return ALLOW


def can_view_resource(principal: AuthContext, resource: Optional[dict], assigned_to_principal: bool) -> AccessDecision:
    if resource is None:
        return deny("Resource not found", 404)
    if principal.is_teacher and resource.get("creator_id") == principal.user_id:
        return ALLOW
    if principal.is_student and assigned_to_principal:
        return ALLOW
    return deny("Not authorized to access this resource")


def can_manage_document(principal: AuthContext, document: Optional[dict]) -> AccessDecision:
    if document is None:
        return deny("Document not found", 404)
    if not principal.is_teacher or document.get("uploaded_by") != principal.user_id:
        return deny("Not authorized to manage this document")
    return ALLOW


def can_read_documents(principal: AuthContext, student_id: str) -> AccessDecision:
    if principal.is_teacher or principal.user_id == student_id:
        return ALLOW
    return deny("Not authorized to view these documents")
