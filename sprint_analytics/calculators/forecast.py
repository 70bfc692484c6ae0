"""Next sprint forecast."""

import logging

import numpy as np

from ..calculator import Calculator
from ..results import NextSprintForecast
from .spillover import SpilloverCalculator, analyze_spillover

logger = logging.getLogger(__name__)

# Share of the spillover percentage taken off the blended velocity
SPILLOVER_DAMPING = 0.25

CAPACITY_FACTORS = {"high": 1.0, "medium": 0.9, "low": 0.8}


def forecast_confidence(velocities):
    """Confidence from the coefficient of variation of trailing velocities."""
    if len(velocities) < 3:
        return "low"
    mean = float(np.mean(velocities))
    if mean <= 0:
        return "low"
    variation = float(np.std(velocities)) / mean
    if variation <= 0.15:
        return "high"
    if variation <= 0.3:
        return "medium"
    return "low"


def forecast_next_sprint(velocity, spillover, settings):
    """Forecast the next sprint's velocity from the trailing history.

    ``velocity`` is the :class:`VelocityData` of the trailing window (newest
    sprint first) and ``spillover`` the :class:`SpilloverAnalysis` of the
    current sprint. The forecast blends the trailing average with the newest
    sprint's velocity using `forecast_weights`, then reduces it in
    proportion to the pending spillover.
    """
    carryover = spillover.incomplete_story_points
    if velocity is None or not velocity.sprints:
        logger.debug("No velocity history to forecast from")
        return NextSprintForecast(
            carryover_story_points=carryover,
            recommendations=["Collect velocity from more sprints before forecasting"],
            risks=["No velocity history available"],
        )

    average_weight, newest_weight = settings.get("forecast_weights", [0.6, 0.4])
    velocities = [s.velocity for s in velocity.sprints]
    average = float(np.mean(velocities))
    newest = velocities[0]

    blended = average_weight * average + newest_weight * newest
    forecast = max(
        0.0, blended * (1 - spillover.spillover_percentage / 100.0 * SPILLOVER_DAMPING)
    )
    forecast = round(forecast, 2)

    confidence = forecast_confidence(velocities)
    threshold = settings.get("spillover_recommendation_threshold", 30)

    recommendations = []
    if spillover.spillover_percentage > threshold:
        recommendations.append(
            f"Reduce commitment: {spillover.spillover_percentage:g}% of committed "
            f"story points spilled over"
        )
    if carryover > forecast * 0.5 and carryover > 0:
        recommendations.append(
            "Prioritise carryover work before pulling in new items"
        )
    if confidence == "low":
        recommendations.append(
            "Velocity is volatile: plan conservatively and keep a buffer"
        )
    if velocity.trend == "decreasing":
        recommendations.append(
            "Velocity is decreasing: review impediments and team capacity"
        )
    if not recommendations:
        recommendations.append("Maintain the current commitment level")

    risks = []
    blocked = spillover.reasons.get("blocked", 0)
    if blocked:
        risks.append(f"{blocked} carryover issue(s) still blocked")
    if velocity.trend == "decreasing":
        risks.append("Velocity trend is decreasing")
    if confidence == "low":
        risks.append("Low forecast confidence")

    return NextSprintForecast(
        forecasted_velocity=forecast,
        confidence_level=confidence,
        recommended_capacity=round(forecast * CAPACITY_FACTORS[confidence], 2),
        available_capacity=round(max(0.0, forecast - carryover), 2),
        carryover_story_points=carryover,
        recommendations=recommendations,
        risks=risks,
    )


class ForecastCalculator(Calculator):
    """Forecast of the next sprint, from the velocity history and the
    spillover of this one.
    """

    report_key = "next_sprint_forecast"

    def run(self):
        spillover = self.get_result(SpilloverCalculator)
        if spillover is None:
            spillover = analyze_spillover(
                self.data.sprint, self.data.issues, self.data.statuses, self.settings
            )
        return forecast_next_sprint(self.data.velocity, spillover, self.settings)
