from enum import Enum
from typing import Dict, FrozenSet

from app.models.all_models import UserRole


class Capability(str, Enum):
    DASHBOARD = "dashboard"
    USER_MANAGEMENT = "user_management"
    STUDENT_MANAGEMENT = "student_management"
    CLASS_SUBJECT_SETUP = "class_subject_setup"
    RESULT_UPLOAD = "result_upload"
    RESULT_APPROVAL = "result_approval"
    POSITION_RANKING = "position_ranking"
    SCRATCH_CARD_GENERATOR = "scratch_card_generator"
    ANALYTICS_DASHBOARD = "analytics_dashboard"
    SETTINGS = "settings"
    AUDIT_LOG = "audit_log"


PERMISSION_MATRIX: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.PRINCIPAL: frozenset({
        Capability.DASHBOARD,
        Capability.USER_MANAGEMENT,
        Capability.STUDENT_MANAGEMENT,
        Capability.CLASS_SUBJECT_SETUP,
        Capability.RESULT_APPROVAL,
        Capability.POSITION_RANKING,
        Capability.SCRATCH_CARD_GENERATOR,
        Capability.ANALYTICS_DASHBOARD,
        Capability.SETTINGS,
        Capability.AUDIT_LOG,
    }),
    UserRole.EXAM_OFFICER: frozenset({
        Capability.DASHBOARD,
        Capability.STUDENT_MANAGEMENT,
        Capability.CLASS_SUBJECT_SETUP,
        Capability.RESULT_APPROVAL,
        Capability.POSITION_RANKING,
        Capability.SCRATCH_CARD_GENERATOR,
        Capability.ANALYTICS_DASHBOARD,
        Capability.AUDIT_LOG,
    }),
    UserRole.FORM_TEACHER: frozenset({
        Capability.DASHBOARD,
        Capability.STUDENT_MANAGEMENT,
    }),
    UserRole.SUBJECT_TEACHER: frozenset({
        Capability.DASHBOARD,
        Capability.RESULT_UPLOAD,
    }),
}


def authorize(role: UserRole, capability: Capability) -> bool:
    """Single place where a role is checked against a capability"""
    return capability in PERMISSION_MATRIX.get(role, frozenset())


def capabilities_for(role: UserRole) -> FrozenSet[Capability]:
    return PERMISSION_MATRIX.get(role, frozenset())
