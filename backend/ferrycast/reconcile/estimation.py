"""
Default linear estimator.

Parameters follow the trainer's output:

    {
      "featureKeys": ["slack_before_departure_minutes", ...],
      "coefficients": [0.12, ...],
      "intercept": 3.4,
      "testMetrics": {"mae": 1.8, "stdDev": 2.3, ...}
    }

The regression predicts minutes after the slot's anchor time.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from ferrycast.reconcile.types import EpochMs, Prediction, VesselTrip
from ferrycast.utils.time import floor_to_second

MS_PER_MINUTE = 60_000

Estimator = Callable[[EpochMs, Mapping, Mapping[str, float]], Prediction]


def _minutes(start: Optional[int], end: Optional[int]) -> float:
    if not start or not end:
        return 0.0
    return (end - start) / MS_PER_MINUTE


def build_features(trip: VesselTrip) -> dict[str, float]:
    """Feature values available at inference time. Missing inputs read as 0."""
    return {
        "slack_before_departure_minutes": max(0.0, _minutes(trip.trip_start, trip.scheduled_departure)),
        "prev_delay_minutes": _minutes(trip.prev_scheduled_departure, trip.prev_left_dock),
        "departure_delay_minutes": _minutes(trip.scheduled_departure, trip.left_dock),
        "schedule_gap_minutes": _minutes(trip.scheduled_departure, trip.next_scheduled_departure),
    }


def linear_estimate(anchor_ms: EpochMs, parameters: Mapping, features: Mapping[str, float]) -> Prediction:
    feature_keys = list(parameters.get("featureKeys") or [])
    coefficients = list(parameters.get("coefficients") or [])
    intercept = float(parameters.get("intercept") or 0.0)

    value = intercept
    for key, coef in zip(feature_keys, coefficients):
        value += float(coef) * float(features.get(key, 0.0))

    metrics = parameters.get("testMetrics") or {}
    mae = round(float(metrics.get("mae", 0.0)), 1)
    std_dev = round(float(metrics.get("stdDev", 0.0)), 1)

    pred = anchor_ms + round(value, 1) * MS_PER_MINUTE
    return Prediction(
        min_time=floor_to_second(int(pred - std_dev * MS_PER_MINUTE)),
        pred_time=floor_to_second(int(pred)),
        max_time=floor_to_second(int(pred + std_dev * MS_PER_MINUTE)),
        mae=mae,
        std_dev=std_dev,
    )


def clamp_not_before(prediction: Prediction, floor_ms: Optional[EpochMs]) -> Prediction:
    """Depart predictions never land before the scheduled departure."""
    if floor_ms is None:
        return prediction
    return Prediction(
        min_time=max(prediction.min_time, floor_ms),
        pred_time=max(prediction.pred_time, floor_ms),
        max_time=max(prediction.max_time, floor_ms),
        mae=prediction.mae,
        std_dev=prediction.std_dev,
    )
