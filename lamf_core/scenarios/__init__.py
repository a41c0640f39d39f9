"""Scenarios that exercise the engine end to end."""

from lamf_core.scenarios.portfolio import PortfolioScenario, SimulationClock

__all__ = ["PortfolioScenario", "SimulationClock"]
