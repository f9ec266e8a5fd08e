from typing import Optional
from pydantic import BaseModel

from .common import MembershipRole


class TeamIn(BaseModel):
    team_name: str
    team_department: Optional[str] = None
    team_business_unit: Optional[str] = None
    team_manager_id: Optional[str] = None
    team_manager_name: Optional[str] = None
    team_manager_email: Optional[str] = None
    team_executive_manager_id: Optional[str] = None
    team_executive_manager_name: Optional[str] = None
    team_executive_manager_email: Optional[str] = None


class TeamUpdate(BaseModel):
    team_name: Optional[str] = None
    team_department: Optional[str] = None
    team_business_unit: Optional[str] = None
    team_manager_id: Optional[str] = None
    team_manager_name: Optional[str] = None
    team_manager_email: Optional[str] = None
    team_executive_manager_id: Optional[str] = None
    team_executive_manager_name: Optional[str] = None
    team_executive_manager_email: Optional[str] = None


class TeamMemberIn(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    role: MembershipRole = MembershipRole.member
