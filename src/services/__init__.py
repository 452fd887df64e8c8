"""Service modules"""
from .planner import LeveragePlanner
from .simulator import Simulator

__all__ = ["LeveragePlanner", "Simulator"]
