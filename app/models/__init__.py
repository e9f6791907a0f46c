"""Database models"""
from app.models.user import User
from app.models.one_time_code import OneTimeCode, CodePurpose

__all__ = ["User", "OneTimeCode", "CodePurpose"]
