"""Admin analytics read models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PlatformSummary:
    total_users: int
    active_users: int
    total_transfers: int
    transfer_volume_paise: int
    deposit_volume_paise: int
    transfers_last_24h: int
