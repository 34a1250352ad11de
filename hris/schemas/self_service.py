from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import date


class MyProfileUpdate(BaseModel):
    """Fields an employee may change on their own record."""
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    civil_status: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    email: Optional[EmailStr] = None
    profile_picture: Optional[str] = None
