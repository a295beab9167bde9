"""Funnel analysis: conversion and drop-off through ordered stages."""

from collections.abc import Mapping, Sequence
from typing import Any

from ..exceptions import InvalidInputError
from ..ingestion.cleaner import to_number
from .insights import Severity
from .models import FunnelAnalysis, FunnelStage, ProcessedFunnelStage, RankedStage

# Drop-off severity bands (percent lost from previous stage)
AMBER_DROP_OFF_PCT = 25.0
RED_DROP_OFF_PCT = 50.0


def _pct(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator else 0.0


def _coerce_stages(stages: Sequence[FunnelStage | Mapping[str, Any]]) -> list[FunnelStage]:
    if not isinstance(stages, (list, tuple)):
        raise InvalidInputError(f"stages must be a list, got {type(stages).__name__}")

    coerced: list[FunnelStage] = []
    for stage in stages:
        if isinstance(stage, FunnelStage):
            coerced.append(FunnelStage(stage.name, to_number(stage.value)))
        elif isinstance(stage, Mapping):
            coerced.append(
                FunnelStage(str(stage.get("name", "")), to_number(stage.get("value")))
            )
        else:
            raise InvalidInputError(
                f"funnel stage must be FunnelStage or mapping, got {type(stage).__name__}"
            )
    return coerced


def analyze_funnel(stages: Sequence[FunnelStage | Mapping[str, Any]]) -> FunnelAnalysis:
    """Compute stage-to-stage and overall conversion for an ordered funnel.

    Args:
        stages: Stages in funnel order, as FunnelStage or {"name", "value"}

    Returns:
        FunnelAnalysis. With fewer than 2 stages the overall conversion
        rate and total drop-off are 0.
    """
    funnel = _coerce_stages(stages)

    processed: list[ProcessedFunnelStage] = []
    rates: list[float] = []
    first_value = funnel[0].value if funnel else 0.0

    for i, stage in enumerate(funnel):
        if i == 0:
            processed.append(
                ProcessedFunnelStage(
                    name=stage.name,
                    value=stage.value,
                    step_conversion_rate=None,
                    cumulative_conversion_rate=100.0 if stage.value > 0 else 0.0,
                    drop_off_count=0.0,
                    drop_off_percent=0.0,
                )
            )
            continue

        previous = funnel[i - 1].value
        step_rate = _pct(stage.value, previous)
        drop_off = max(0.0, previous - stage.value)
        rates.append(step_rate)
        processed.append(
            ProcessedFunnelStage(
                name=stage.name,
                value=stage.value,
                step_conversion_rate=step_rate,
                cumulative_conversion_rate=_pct(stage.value, first_value),
                drop_off_count=drop_off,
                drop_off_percent=_pct(drop_off, previous),
            )
        )

    if len(funnel) < 2:
        return FunnelAnalysis(
            stages=processed,
            overall_conversion_rate=0.0,
            stage_conversion_rates=[],
            total_drop_off=0.0,
            biggest_drop_off_stage=None,
            is_sequential=True,
        )

    dropping = [s for s in processed[1:] if s.drop_off_count > 0]
    biggest = max(dropping, key=lambda s: s.drop_off_percent) if dropping else None

    return FunnelAnalysis(
        stages=processed,
        overall_conversion_rate=_pct(funnel[-1].value, first_value),
        stage_conversion_rates=rates,
        total_drop_off=first_value - funnel[-1].value,
        biggest_drop_off_stage=biggest,
        is_sequential=all(
            funnel[i].value <= funnel[i - 1].value for i in range(1, len(funnel))
        ),
    )


def get_drop_off_severity(drop_off_percent: float) -> Severity:
    """Traffic-light rating of a stage's drop-off."""
    if drop_off_percent < AMBER_DROP_OFF_PCT:
        return Severity.GREEN
    if drop_off_percent < RED_DROP_OFF_PCT:
        return Severity.AMBER
    return Severity.RED


def rank_stages(stages: Sequence[FunnelStage | Mapping[str, Any]]) -> list[RankedStage]:
    """Stages sorted by value (descending) with their share of the total.

    Used instead of a funnel when stage values are not sequential.
    """
    funnel = _coerce_stages(stages)
    total = sum(s.value for s in funnel)
    return [
        RankedStage(name=s.name, value=s.value, share=_pct(s.value, total))
        for s in sorted(funnel, key=lambda s: s.value, reverse=True)
    ]
