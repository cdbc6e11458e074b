from .planning_config import PlanningSettings, get_planning_settings

__all__ = ["PlanningSettings", "get_planning_settings"]
