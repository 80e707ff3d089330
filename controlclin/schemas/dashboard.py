from pydantic import BaseModel
from typing import List, Dict

class PathologyCount(BaseModel):
    name: str
    count: int

class DashboardStats(BaseModel):
    revenue: float
    average_ticket: float
    active_patients: int
    appointments_count: int
    no_show_rate: int
    gender_distribution: Dict[str, int]
    top_pathologies: List[PathologyCount]

class DashboardInsight(BaseModel):
    insight: str
    action: str

class DashboardResponse(BaseModel):
    stats: DashboardStats
    insight: DashboardInsight
