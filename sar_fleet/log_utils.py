"""
Progress Bar Utilities

PURPOSE:
    Standardized progress bar for fixed-length mission runs.

USAGE:
    from sar_fleet.log_utils import create_mission_progress_bar

    pbar = create_mission_progress_bar(6000, "Mission")
    for tick in range(6000):
        # ... controller.tick() ...
        pbar.update(1)
        pbar.set_postfix(format_counts_for_postfix(counts))
    pbar.close()
"""

from tqdm import tqdm
from typing import Dict


def create_mission_progress_bar(
    total_ticks: int,
    description: str = "Mission",
    position: int = 0,
    leave: bool = True
) -> tqdm:
    """
    Create a standardized progress bar for a mission run.

    Args:
        total_ticks: Total number of simulation ticks
        description: Progress bar description
        position: Line position (for multiple bars)
        leave: Keep bar after completion

    Returns:
        tqdm progress bar
    """
    return tqdm(
        total=total_ticks,
        desc=description,
        unit='ticks',
        ncols=100,
        position=position,
        leave=leave,
        bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]'
    )


def format_counts_for_postfix(counts: Dict[str, int]) -> Dict[str, str]:
    """
    Format survivor status counts for progress bar postfix display.

    Args:
        counts: Mapping of status name to count (e.g. {"DETECTED": 3})

    Returns:
        Short keys with string values, zero counts dropped
    """
    formatted = {}

    for key, value in counts.items():
        if not value:
            continue
        # Short names for display
        short_key = key.lower().replace('_', '')[:6]
        formatted[short_key] = str(int(value))

    return formatted
