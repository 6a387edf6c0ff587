"""
Base schemas used across the application.
"""
from pydantic import BaseModel

class NameValue(BaseModel):
    """Single labelled value as consumed by the dashboard's pie / bar charts."""
    name: str
    value: float = 0

class MonthlyValue(BaseModel):
    """One point of a month-labelled series."""
    date: str
    value: float = 0
