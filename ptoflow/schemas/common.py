from enum import Enum


class LeaveType(str, Enum):
    vacation = "vacation"
    sick = "sick"
    personal = "personal"
    holiday = "holiday"
    other = "other"


class RequestStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    declined = "declined"


class ScheduleType(str, Enum):
    full_day = "FULL_DAY"
    half_day_morning = "HALF_DAY_MORNING"
    half_day_afternoon = "HALF_DAY_AFTERNOON"


class MembershipRole(str, Enum):
    member = "Member"
    manager = "Manager"
    executive_manager = "Executive Manager"


class EmploymentType(str, Enum):
    full_time = "full_time"
    part_time = "part_time"


class AccountabilityType(str, Enum):
    work_year = "work_year"
    standard_year = "standard_year"
