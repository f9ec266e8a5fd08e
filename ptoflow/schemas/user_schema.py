from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .common import AccountabilityType, EmploymentType, MembershipRole


class IdentityAccount(BaseModel):
    """An account as returned by the host identity provider."""

    account_id: str = Field(alias="accountId")
    display_name: str = Field(default="", alias="displayName")
    email_address: Optional[str] = Field(default=None, alias="emailAddress")
    active: bool = True

    model_config = ConfigDict(populate_by_name=True)


class TeamMembership(BaseModel):
    team_id: str
    role: MembershipRole = MembershipRole.member


class UserIn(BaseModel):
    user_id: Optional[str] = None
    jira_account_id: Optional[str] = None
    display_name: str
    email_address: Optional[str] = None
    team_memberships: list[TeamMembership] = Field(default_factory=list)
    employment_type: EmploymentType = EmploymentType.full_time
    capacity: Optional[float] = None
    standard_availability: Optional[dict[str, float]] = None
    isAdmin: bool = False
    pto_accountability_type: AccountabilityType = AccountabilityType.standard_year
    pto_available_in_the_period: Optional[dict[str, float]] = None
    hiring_date: Optional[date] = None


class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    email_address: Optional[str] = None
    team_memberships: Optional[list[TeamMembership]] = None
    employment_type: Optional[EmploymentType] = None
    capacity: Optional[float] = None
    standard_availability: Optional[dict[str, float]] = None
    pto_accountability_type: Optional[AccountabilityType] = None
    pto_available_in_the_period: Optional[dict[str, float]] = None
    hiring_date: Optional[date] = None
    status: Optional[str] = None


class AdminFlagIn(BaseModel):
    is_admin: bool = Field(alias="isAdmin")

    model_config = ConfigDict(populate_by_name=True)
