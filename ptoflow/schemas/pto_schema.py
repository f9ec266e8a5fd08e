from datetime import date as _date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import LeaveType, ScheduleType


class DailyScheduleIn(BaseModel):
    date: _date
    schedule_type: ScheduleType = Field(default=ScheduleType.full_day, alias="type")

    model_config = ConfigDict(populate_by_name=True)


class PTORequestIn(BaseModel):
    requester_id: str
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    manager_email: Optional[str] = None
    executive_manager_id: Optional[str] = None
    executive_manager_name: Optional[str] = None
    executive_manager_email: Optional[str] = None
    leave_type: LeaveType = Field(alias="leaveType")
    reason: Optional[str] = None
    start_date: _date = Field(alias="startDate")
    end_date: _date = Field(alias="endDate")
    daily_schedules: list[DailyScheduleIn] = Field(default_factory=list, alias="dailySchedules")

    # Accept both snake_case field names and the frontend's camelCase aliases
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date > self.end_date:
            raise ValueError("Start date cannot be after end date")
        for schedule in self.daily_schedules:
            if not (self.start_date <= schedule.date <= self.end_date):
                raise ValueError(f"Daily schedule {schedule.date.isoformat()} is outside the requested range")
        return self


class PTORequestUpdate(BaseModel):
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    manager_email: Optional[str] = None
    executive_manager_id: Optional[str] = None
    executive_manager_name: Optional[str] = None
    executive_manager_email: Optional[str] = None
    leave_type: Optional[LeaveType] = Field(default=None, alias="leaveType")
    reason: Optional[str] = None
    start_date: Optional[_date] = Field(default=None, alias="startDate")
    end_date: Optional[_date] = Field(default=None, alias="endDate")
    daily_schedules: Optional[list[DailyScheduleIn]] = Field(default=None, alias="dailySchedules")

    model_config = ConfigDict(populate_by_name=True)


class ApproveIn(BaseModel):
    approver_id: str = Field(alias="approverId")

    model_config = ConfigDict(populate_by_name=True)


class DeclineIn(BaseModel):
    decliner_id: str = Field(alias="declinerId")
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
