"""
Scenarios - Built-in army configurations.

A scenario seeds both reserves with the same army for a mirror match.
"""

from .armies import Scenario, SCENARIOS, DEFAULT_SCENARIO, get_scenario, list_scenarios

__all__ = [
    "Scenario",
    "SCENARIOS",
    "DEFAULT_SCENARIO",
    "get_scenario",
    "list_scenarios",
]
