"""
Permission Catalog — the closed set of capability tokens.

Tokens are grouped by domain for role-editing screens. Three derived sets
are consumed by the permission resolver:

    PLATFORM_ONLY_PERMISSIONS   granted to platform admins and nobody else
    TENANT_ADMIN_PERMISSIONS    everything except the platform-only tokens
    LEGACY_ROLE_PERMISSIONS     fixed templates keyed by LegacyRole

All sets are frozensets built once at import time.
"""

from enum import Enum


class Permission(str, Enum):
    # Platform (owner only)
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    CAN_MANAGE_TENANTS = "CAN_MANAGE_TENANTS"
    CAN_VIEW_ALL_TENANTS = "CAN_VIEW_ALL_TENANTS"

    # User management
    CAN_VIEW_ALL_USERS = "CAN_VIEW_ALL_USERS"
    CAN_CREATE_USER = "CAN_CREATE_USER"
    CAN_EDIT_USER = "CAN_EDIT_USER"
    CAN_INVITE_USER = "CAN_INVITE_USER"
    CAN_SUSPEND_USER = "CAN_SUSPEND_USER"
    CAN_RESTORE_USER = "CAN_RESTORE_USER"
    CAN_ARCHIVE_USER = "CAN_ARCHIVE_USER"
    CAN_DELETE_ARCHIVED_USER = "CAN_DELETE_ARCHIVED_USER"
    CAN_RESET_USER_PASSWORD = "CAN_RESET_USER_PASSWORD"
    CAN_RESET_USER_MFA = "CAN_RESET_USER_MFA"
    CAN_ASSIGN_ROLE = "CAN_ASSIGN_ROLE"
    CAN_VIEW_USER_ACTIVITY = "CAN_VIEW_USER_ACTIVITY"

    # Role management
    CAN_VIEW_ROLES = "CAN_VIEW_ROLES"
    CAN_CREATE_ROLE = "CAN_CREATE_ROLE"
    CAN_EDIT_ROLE = "CAN_EDIT_ROLE"
    CAN_DELETE_ROLE = "CAN_DELETE_ROLE"
    CAN_ASSIGN_PERMISSIONS = "CAN_ASSIGN_PERMISSIONS"

    # Business units
    CAN_VIEW_BUSINESS_UNITS = "CAN_VIEW_BUSINESS_UNITS"
    CAN_CREATE_BUSINESS_UNIT = "CAN_CREATE_BUSINESS_UNIT"
    CAN_EDIT_BUSINESS_UNIT = "CAN_EDIT_BUSINESS_UNIT"
    CAN_ARCHIVE_BUSINESS_UNIT = "CAN_ARCHIVE_BUSINESS_UNIT"
    CAN_DELETE_BUSINESS_UNIT = "CAN_DELETE_BUSINESS_UNIT"
    CAN_ASSIGN_BUSINESS_UNIT = "CAN_ASSIGN_BUSINESS_UNIT"

    # Tasks
    CAN_VIEW_TEAM_TASKS = "CAN_VIEW_TEAM_TASKS"
    CAN_CREATE_TEAM_TASK = "CAN_CREATE_TEAM_TASK"
    CAN_EDIT_TEAM_TASK = "CAN_EDIT_TEAM_TASK"
    CAN_DELETE_ANY_TASK = "CAN_DELETE_ANY_TASK"
    CAN_ASSIGN_TASK = "CAN_ASSIGN_TASK"
    CAN_EDIT_ANY_TASK_STATUS = "CAN_EDIT_ANY_TASK_STATUS"
    CAN_COMMENT_ON_TEAM_TASK = "CAN_COMMENT_ON_TEAM_TASK"
    CAN_CREATE_PERSONAL_TASKS = "CAN_CREATE_PERSONAL_TASKS"
    CAN_VIEW_OWN_TASKS = "CAN_VIEW_OWN_TASKS"

    # EOD reports
    CAN_VIEW_ALL_REPORTS = "CAN_VIEW_ALL_REPORTS"
    CAN_VIEW_TEAM_REPORTS = "CAN_VIEW_TEAM_REPORTS"
    CAN_VIEW_OWN_REPORTS = "CAN_VIEW_OWN_REPORTS"
    CAN_ACKNOWLEDGE_REPORTS = "CAN_ACKNOWLEDGE_REPORTS"
    CAN_ACKNOWLEDGE_ANY_EOD = "CAN_ACKNOWLEDGE_ANY_EOD"
    CAN_REQUIRE_EOD_SUBMISSION = "CAN_REQUIRE_EOD_SUBMISSION"
    CAN_MARK_EOD_LATE = "CAN_MARK_EOD_LATE"
    CAN_SUBMIT_OWN_EOD = "CAN_SUBMIT_OWN_EOD"
    CAN_EXPORT_EODS = "CAN_EXPORT_EODS"

    # Leave
    CAN_VIEW_ALL_LEAVES = "CAN_VIEW_ALL_LEAVES"
    CAN_VIEW_TEAM_LEAVES = "CAN_VIEW_TEAM_LEAVES"
    CAN_APPROVE_LEAVE = "CAN_APPROVE_LEAVE"
    CAN_REJECT_LEAVE = "CAN_REJECT_LEAVE"
    CAN_OVERRIDE_LEAVE_BALANCE = "CAN_OVERRIDE_LEAVE_BALANCE"
    CAN_SUBMIT_OWN_LEAVE = "CAN_SUBMIT_OWN_LEAVE"

    # Meetings & calendar
    CAN_MANAGE_TEAM_MEETINGS = "CAN_MANAGE_TEAM_MEETINGS"
    CAN_VIEW_TEAM_MEETINGS = "CAN_VIEW_TEAM_MEETINGS"
    CAN_VIEW_OWN_MEETINGS = "CAN_VIEW_OWN_MEETINGS"
    CAN_SCHEDULE_MEETING = "CAN_SCHEDULE_MEETING"
    CAN_VIEW_TEAM_CALENDAR = "CAN_VIEW_TEAM_CALENDAR"
    CAN_VIEW_OWN_CALENDAR = "CAN_VIEW_OWN_CALENDAR"
    CAN_MANAGE_TEAM_CALENDAR = "CAN_MANAGE_TEAM_CALENDAR"

    # Settings & integrations
    CAN_MANAGE_TENANT_SETTINGS = "CAN_MANAGE_TENANT_SETTINGS"
    CAN_VIEW_TENANT_SETTINGS = "CAN_VIEW_TENANT_SETTINGS"
    CAN_MANAGE_INTEGRATIONS = "CAN_MANAGE_INTEGRATIONS"
    CAN_MANAGE_NOTIFICATIONS = "CAN_MANAGE_NOTIFICATIONS"
    CAN_VIEW_BILLING = "CAN_VIEW_BILLING"

    # Audit & activity log
    CAN_VIEW_ACTIVITY_LOG = "CAN_VIEW_ACTIVITY_LOG"
    CAN_EXPORT_ACTIVITY_LOG = "CAN_EXPORT_ACTIVITY_LOG"
    CAN_VIEW_AUDIT_TRAIL = "CAN_VIEW_AUDIT_TRAIL"

    # Analytics
    CAN_VIEW_ANALYTICS_DASHBOARD = "CAN_VIEW_ANALYTICS_DASHBOARD"
    CAN_EXPORT_DATA = "CAN_EXPORT_DATA"
    CAN_VIEW_LEADERBOARD = "CAN_VIEW_LEADERBOARD"
    CAN_USE_PERFORMANCE_HUB = "CAN_USE_PERFORMANCE_HUB"
    CAN_VIEW_TRIGGER_LOG = "CAN_VIEW_TRIGGER_LOG"

    # Umbrella tokens still stored on roles created before the split
    CAN_MANAGE_USERS = "CAN_MANAGE_USERS"
    CAN_MANAGE_ROLES = "CAN_MANAGE_ROLES"
    CAN_MANAGE_TEAM_REPORTS = "CAN_MANAGE_TEAM_REPORTS"
    CAN_MANAGE_TEAM_TASKS = "CAN_MANAGE_TEAM_TASKS"
    CAN_MANAGE_ALL_LEAVES = "CAN_MANAGE_ALL_LEAVES"
    CAN_MANAGE_BUSINESS_UNITS = "CAN_MANAGE_BUSINESS_UNITS"


P = Permission


# ── Groups (role editor layout) ──────────────────────────────────────────────

PERMISSION_GROUPS: dict[str, dict] = {
    "platform_admin": {
        "label": "Platform Administration (owner only)",
        "permissions": (P.PLATFORM_ADMIN, P.CAN_MANAGE_TENANTS, P.CAN_VIEW_ALL_TENANTS),
    },
    "user_management": {
        "label": "User Management",
        "permissions": (
            P.CAN_VIEW_ALL_USERS, P.CAN_CREATE_USER, P.CAN_EDIT_USER,
            P.CAN_INVITE_USER, P.CAN_SUSPEND_USER, P.CAN_RESTORE_USER,
            P.CAN_ARCHIVE_USER, P.CAN_DELETE_ARCHIVED_USER,
            P.CAN_RESET_USER_PASSWORD, P.CAN_RESET_USER_MFA,
            P.CAN_ASSIGN_ROLE, P.CAN_VIEW_USER_ACTIVITY, P.CAN_MANAGE_USERS,
        ),
    },
    "role_management": {
        "label": "Role & Permission Management",
        "permissions": (
            P.CAN_VIEW_ROLES, P.CAN_CREATE_ROLE, P.CAN_EDIT_ROLE,
            P.CAN_DELETE_ROLE, P.CAN_ASSIGN_PERMISSIONS, P.CAN_MANAGE_ROLES,
        ),
    },
    "business_unit_management": {
        "label": "Business Unit Management",
        "permissions": (
            P.CAN_VIEW_BUSINESS_UNITS, P.CAN_CREATE_BUSINESS_UNIT,
            P.CAN_EDIT_BUSINESS_UNIT, P.CAN_ARCHIVE_BUSINESS_UNIT,
            P.CAN_DELETE_BUSINESS_UNIT, P.CAN_ASSIGN_BUSINESS_UNIT,
            P.CAN_MANAGE_BUSINESS_UNITS,
        ),
    },
    "task_management": {
        "label": "Task Management",
        "permissions": (
            P.CAN_VIEW_TEAM_TASKS, P.CAN_CREATE_TEAM_TASK, P.CAN_EDIT_TEAM_TASK,
            P.CAN_DELETE_ANY_TASK, P.CAN_ASSIGN_TASK, P.CAN_EDIT_ANY_TASK_STATUS,
            P.CAN_COMMENT_ON_TEAM_TASK, P.CAN_CREATE_PERSONAL_TASKS,
            P.CAN_VIEW_OWN_TASKS, P.CAN_MANAGE_TEAM_TASKS,
        ),
    },
    "eod_report_management": {
        "label": "EOD Report Management",
        "permissions": (
            P.CAN_VIEW_ALL_REPORTS, P.CAN_VIEW_TEAM_REPORTS, P.CAN_VIEW_OWN_REPORTS,
            P.CAN_ACKNOWLEDGE_REPORTS, P.CAN_ACKNOWLEDGE_ANY_EOD,
            P.CAN_REQUIRE_EOD_SUBMISSION, P.CAN_MARK_EOD_LATE,
            P.CAN_SUBMIT_OWN_EOD, P.CAN_EXPORT_EODS, P.CAN_MANAGE_TEAM_REPORTS,
        ),
    },
    "leave_management": {
        "label": "Leave Management",
        "permissions": (
            P.CAN_VIEW_ALL_LEAVES, P.CAN_VIEW_TEAM_LEAVES, P.CAN_APPROVE_LEAVE,
            P.CAN_REJECT_LEAVE, P.CAN_OVERRIDE_LEAVE_BALANCE,
            P.CAN_SUBMIT_OWN_LEAVE, P.CAN_MANAGE_ALL_LEAVES,
        ),
    },
    "meeting_management": {
        "label": "Meeting & Calendar Management",
        "permissions": (
            P.CAN_MANAGE_TEAM_MEETINGS, P.CAN_VIEW_TEAM_MEETINGS,
            P.CAN_VIEW_OWN_MEETINGS, P.CAN_SCHEDULE_MEETING,
            P.CAN_VIEW_TEAM_CALENDAR, P.CAN_VIEW_OWN_CALENDAR,
            P.CAN_MANAGE_TEAM_CALENDAR,
        ),
    },
    "settings": {
        "label": "Settings & Integrations",
        "permissions": (
            P.CAN_MANAGE_TENANT_SETTINGS, P.CAN_VIEW_TENANT_SETTINGS,
            P.CAN_MANAGE_INTEGRATIONS, P.CAN_MANAGE_NOTIFICATIONS,
            P.CAN_VIEW_BILLING,
        ),
    },
    "audit": {
        "label": "Audit & Activity Logs",
        "permissions": (
            P.CAN_VIEW_ACTIVITY_LOG, P.CAN_EXPORT_ACTIVITY_LOG, P.CAN_VIEW_AUDIT_TRAIL,
        ),
    },
    "analytics": {
        "label": "Analytics & Reporting",
        "permissions": (
            P.CAN_VIEW_ANALYTICS_DASHBOARD, P.CAN_EXPORT_DATA,
            P.CAN_VIEW_LEADERBOARD, P.CAN_USE_PERFORMANCE_HUB,
            P.CAN_VIEW_TRIGGER_LOG,
        ),
    },
}


ALL_PERMISSIONS: frozenset[Permission] = frozenset(Permission)

PLATFORM_ONLY_PERMISSIONS: frozenset[Permission] = frozenset(
    PERMISSION_GROUPS["platform_admin"]["permissions"]
)

TENANT_ADMIN_PERMISSIONS: frozenset[Permission] = ALL_PERMISSIONS - PLATFORM_ONLY_PERMISSIONS


# ── Legacy role templates ────────────────────────────────────────────────────


class LegacyRole(str, Enum):
    """Closed set of role kinds recognised from a free-text role name."""

    TENANT_ADMIN = "tenant_admin"
    MANAGER = "manager"
    TEAM_LEAD = "team_lead"
    EMPLOYEE = "employee"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_name(cls, role_name: str | None) -> "LegacyRole":
        """Classify a role name. Case and surrounding whitespace are ignored."""
        if not role_name:
            return cls.UNRECOGNIZED
        return _LEGACY_ROLE_NAMES.get(" ".join(role_name.lower().split()), cls.UNRECOGNIZED)


_LEGACY_ROLE_NAMES: dict[str, LegacyRole] = {
    "tenant admin": LegacyRole.TENANT_ADMIN,
    "admin": LegacyRole.TENANT_ADMIN,
    "super admin": LegacyRole.TENANT_ADMIN,
    "manager": LegacyRole.MANAGER,
    "team lead": LegacyRole.TEAM_LEAD,
    "employee": LegacyRole.EMPLOYEE,
}


MANAGER_PERMISSIONS: frozenset[Permission] = frozenset({
    P.CAN_VIEW_USER_ACTIVITY,
    P.CAN_VIEW_BUSINESS_UNITS,
    P.CAN_VIEW_TEAM_TASKS,
    P.CAN_CREATE_TEAM_TASK,
    P.CAN_EDIT_TEAM_TASK,
    P.CAN_ASSIGN_TASK,
    P.CAN_EDIT_ANY_TASK_STATUS,
    P.CAN_COMMENT_ON_TEAM_TASK,
    P.CAN_CREATE_PERSONAL_TASKS,
    P.CAN_VIEW_OWN_TASKS,
    P.CAN_VIEW_TEAM_REPORTS,
    P.CAN_ACKNOWLEDGE_REPORTS,
    P.CAN_SUBMIT_OWN_EOD,
    P.CAN_VIEW_OWN_REPORTS,
    P.CAN_REQUIRE_EOD_SUBMISSION,
    P.CAN_VIEW_TEAM_LEAVES,
    P.CAN_APPROVE_LEAVE,
    P.CAN_REJECT_LEAVE,
    P.CAN_SUBMIT_OWN_LEAVE,
    P.CAN_MANAGE_TEAM_MEETINGS,
    P.CAN_VIEW_TEAM_MEETINGS,
    P.CAN_VIEW_OWN_MEETINGS,
    P.CAN_SCHEDULE_MEETING,
    P.CAN_VIEW_TEAM_CALENDAR,
    P.CAN_VIEW_OWN_CALENDAR,
    P.CAN_MANAGE_TEAM_CALENDAR,
    P.CAN_VIEW_ANALYTICS_DASHBOARD,
    P.CAN_VIEW_LEADERBOARD,
    P.CAN_USE_PERFORMANCE_HUB,
    P.CAN_VIEW_TRIGGER_LOG,
})

TEAM_LEAD_PERMISSIONS: frozenset[Permission] = frozenset({
    P.CAN_VIEW_BUSINESS_UNITS,
    P.CAN_VIEW_TEAM_TASKS,
    P.CAN_CREATE_TEAM_TASK,
    P.CAN_ASSIGN_TASK,
    P.CAN_COMMENT_ON_TEAM_TASK,
    P.CAN_CREATE_PERSONAL_TASKS,
    P.CAN_VIEW_OWN_TASKS,
    P.CAN_VIEW_TEAM_REPORTS,
    P.CAN_SUBMIT_OWN_EOD,
    P.CAN_VIEW_OWN_REPORTS,
    P.CAN_VIEW_TEAM_LEAVES,
    P.CAN_SUBMIT_OWN_LEAVE,
    P.CAN_VIEW_TEAM_MEETINGS,
    P.CAN_VIEW_OWN_MEETINGS,
    P.CAN_SCHEDULE_MEETING,
    P.CAN_VIEW_TEAM_CALENDAR,
    P.CAN_VIEW_OWN_CALENDAR,
    P.CAN_VIEW_LEADERBOARD,
    P.CAN_VIEW_TRIGGER_LOG,
})

EMPLOYEE_PERMISSIONS: frozenset[Permission] = frozenset({
    P.CAN_CREATE_PERSONAL_TASKS,
    P.CAN_VIEW_OWN_TASKS,
    P.CAN_SUBMIT_OWN_EOD,
    P.CAN_VIEW_OWN_REPORTS,
    P.CAN_SUBMIT_OWN_LEAVE,
    P.CAN_VIEW_OWN_MEETINGS,
    P.CAN_VIEW_OWN_CALENDAR,
    P.CAN_VIEW_LEADERBOARD,
})

LEGACY_ROLE_PERMISSIONS: dict[LegacyRole, frozenset[Permission]] = {
    LegacyRole.TENANT_ADMIN: TENANT_ADMIN_PERMISSIONS,
    LegacyRole.MANAGER: MANAGER_PERMISSIONS,
    LegacyRole.TEAM_LEAD: TEAM_LEAD_PERMISSIONS,
    LegacyRole.EMPLOYEE: EMPLOYEE_PERMISSIONS,
    LegacyRole.UNRECOGNIZED: frozenset(),
}

# System roles seeded for every tenant: (name, legacy kind, description)
SYSTEM_ROLES: tuple[tuple[str, LegacyRole, str], ...] = (
    ("Tenant Admin", LegacyRole.TENANT_ADMIN,
     "Full control over tenant settings, users, roles and all features."),
    ("Manager", LegacyRole.MANAGER,
     "Manages team members, approves leave, acknowledges EODs."),
    ("Team Lead", LegacyRole.TEAM_LEAD,
     "Coordinates team tasks and meetings, reviews EODs."),
    ("Employee", LegacyRole.EMPLOYEE,
     "Self-service tasks, EODs, leave and calendar."),
)


def parse_permission(value) -> Permission | None:
    """Return the catalog member for *value*, or None for unknown tokens."""
    if isinstance(value, Permission):
        return value
    try:
        return Permission(value)
    except ValueError:
        return None


def permission_groups() -> list[dict]:
    """Serialisable group listing for role-editing screens."""
    return [
        {"key": key, "label": group["label"], "permissions": [p.value for p in group["permissions"]]}
        for key, group in PERMISSION_GROUPS.items()
    ]
