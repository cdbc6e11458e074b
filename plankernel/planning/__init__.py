from .functions_manual import get_available_functions, get_functions_manual
from .plan import PLAN_RESULT_KEY, FunctionBody, Plan, PlanKind, StepsBody
from .plan_models import PlanModel
from .xml_plan_parser import parse_plan_xml

__all__ = [
    "FunctionBody",
    "PLAN_RESULT_KEY",
    "Plan",
    "PlanKind",
    "PlanModel",
    "StepsBody",
    "get_available_functions",
    "get_functions_manual",
    "parse_plan_xml",
]
