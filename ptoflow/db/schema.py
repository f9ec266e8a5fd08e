"""Collection schema registry.

The key-value store has no DDL. Each collection declares its fields and a
shallow type so writes can be type-checked; anything not listed here is
stored as-is.
"""

PTO_REQUESTS = "pto_requests"
PTO_DAILY_SCHEDULES = "pto_daily_schedules"
TEAMS = "teams"
USERS = "users"

SCHEMA: dict[str, dict[str, str]] = {
    PTO_REQUESTS: {
        "pto_request_id": "string",
        # Requester / manager / executive manager are snapshots taken at
        # submission time, not live references
        "requester_id": "string",
        "requester_name": "string",
        "requester_email": "string",
        "manager_id": "string",
        "manager_name": "string",
        "manager_email": "string",
        "executive_manager_id": "string",
        "executive_manager_name": "string",
        "executive_manager_email": "string",
        "leave_type": "string",
        "reason": "text",
        "status": "string",
        "start_date": "date",
        "end_date": "date",
        "daily_schedules": "json",
        "total_days": "number",
        "total_hours": "number",
        "submitted_at": "datetime",
        "reviewed_at": "datetime",
        "reviewed_by": "string",
        "reviewer_reason": "string",
        "created_at": "datetime",
        "updated_at": "datetime",
    },
    PTO_DAILY_SCHEDULES: {
        "pto_daily_schedule_id": "string",
        "pto_request_id": "string",
        "date": "date",
        "schedule_type": "string",
        "leave_type": "string",
        "hours": "number",
        "created_at": "datetime",
        "requester_id": "string",
        "requester_name": "string",
        "requester_email": "string",
        "manager_id": "string",
        "manager_name": "string",
        "manager_email": "string",
        "executive_manager_id": "string",
        "executive_manager_name": "string",
        "executive_manager_email": "string",
    },
    TEAMS: {
        "team_id": "string",
        "team_name": "string",
        "team_department": "string",
        "team_business_unit": "string",
        "team_manager_name": "string",
        "team_manager_id": "string",
        "team_manager_email": "string",
        "team_executive_manager_name": "string",
        "team_executive_manager_id": "string",
        "team_executive_manager_email": "string",
        "created_at": "datetime",
        "updated_at": "datetime",
    },
    USERS: {
        "user_id": "string",
        "jira_account_id": "string",
        "display_name": "string",
        "email_address": "string",
        "team_memberships": "json",
        "employment_type": "string",
        "capacity": "number",
        "standard_availability": "json",
        "isAdmin": "boolean",
        "isManager": "json",
        "isExecutive_Manager": "json",
        "pto_accountability_type": "string",
        "pto_available_in_the_period": "json",
        "hiring_date": "date",
        "status": "string",
        "created_at": "datetime",
        "updated_at": "datetime",
        "used_pto_days_in_period": "json",
        "remaining_pto_days_in_period": "json",
    },
}

LEAVE_TYPES = ("vacation", "sick", "personal", "holiday", "other")

# Weekly hours per employment type
EMPLOYMENT_CAPACITY = {"full_time": 40, "part_time": 20}

DEFAULT_PTO_ALLOCATION = {
    "vacation": 20,
    "sick": 10,
    "personal": 1,
    "holiday": 0,
    "other": 0,
}

DEFAULT_AVAILABILITY = {
    "monday": 8,
    "tuesday": 8,
    "wednesday": 8,
    "thursday": 8,
    "friday": 8,
    "saturday": 0,
    "sunday": 0,
}


def primary_key_field(collection: str) -> str:
    # pto_requests -> pto_request_id, users -> user_id
    return f"{collection[:-1]}_id"
