from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow


class AIConfig(SQLModel):
    personality: str = "ANALYTICAL" # ANALYTICAL, EMPATHETIC, COMMERCIAL
    focus: str = "REVENUE" # RETENTION, REVENUE, ACQUISITION
    custom_prompt: Optional[str] = None


class ScheduleConfig(SQLModel):
    open_time: str = "08:00"
    close_time: str = "18:00"
    days_open: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5]) # 0=Sunday..6=Saturday
    slot_duration: int = 30


class Clinic(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("c"))
    name: str
    slug: str
    is_active: bool = True
    primary_color: Optional[str] = None
    logo_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    ai_config: AIConfig = Field(default_factory=AIConfig)
    schedule_config: ScheduleConfig = Field(default_factory=ScheduleConfig)
    created_at: datetime = Field(default_factory=utcnow)
