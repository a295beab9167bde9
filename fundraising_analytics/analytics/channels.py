"""Channel contribution and efficiency scoring."""

from collections.abc import Mapping, Sequence
from typing import Any

from ..exceptions import InvalidInputError
from ..ingestion.cleaner import to_number
from .models import ChannelInput, ChannelResult


def calculate_channel_contribution(
    channels: Sequence[ChannelInput | Mapping[str, Any]],
) -> list[ChannelResult]:
    """Share of total conversions and conversions per unit spend per channel.

    Formula:
        contribution = conversions / total conversions * 100 (0 unless total > 0)
        efficiency = conversions / spend (0 unless spend > 0)

    Output order matches input order.
    """
    if not isinstance(channels, (list, tuple)):
        raise InvalidInputError(f"channels must be a list, got {type(channels).__name__}")

    inputs: list[ChannelInput] = []
    for channel in channels:
        if isinstance(channel, ChannelInput):
            inputs.append(channel)
        elif isinstance(channel, Mapping):
            inputs.append(
                ChannelInput(
                    name=str(channel.get("name", "")),
                    conversions=to_number(channel.get("conversions")),
                    spend=to_number(channel.get("spend")),
                )
            )
        else:
            raise InvalidInputError(
                f"channel must be ChannelInput or mapping, got {type(channel).__name__}"
            )

    total_conversions = sum(to_number(c.conversions) for c in inputs)

    results: list[ChannelResult] = []
    for channel in inputs:
        conversions = to_number(channel.conversions)
        spend = to_number(channel.spend)
        results.append(
            ChannelResult(
                name=channel.name,
                contribution=(
                    conversions / total_conversions * 100 if total_conversions > 0 else 0.0
                ),
                efficiency=conversions / spend if spend > 0 else 0.0,
            )
        )

    return results
