"""Protocol parameters and service configuration.

No client library is imported. Pure configuration data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rentflow.core.types import Address
from rentflow.oracle.signature_instruction import ED25519_PROGRAM_ID
from rentflow.protocol.settlement import GRACE_PERIOD_SECONDS, PENALTY_BPS, YIELD_BPS

# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------

RENTFLOW_PROGRAM_ID: Address = Address.from_seed("rentflow.program")

TASK_QUEUE: str = "rentflow"


# ---------------------------------------------------------------------------
# Protocol configuration
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ProtocolConfig:
    """Parameters fixed at deployment.

    enforce_ltv: cap deposit_collateral funding at booking_value * ltv_bps / 10000.
    allow_defaulted_withdrawal: let the host close a liquidated obligation;
        by default its record is kept as evidence of default.
    """

    admin: Address
    oracle_key: Address
    program_id: Address = RENTFLOW_PROGRAM_ID
    verifier_program_id: Address = ED25519_PROGRAM_ID
    grace_period_seconds: int = GRACE_PERIOD_SECONDS
    yield_bps: int = YIELD_BPS
    penalty_bps: int = PENALTY_BPS
    enforce_ltv: bool = True
    allow_defaulted_withdrawal: bool = False

    def __post_init__(self) -> None:
        if self.grace_period_seconds < 0:
            raise TypeError(
                f"grace_period_seconds must be >= 0, got {self.grace_period_seconds}"
            )
        for name in ("yield_bps", "penalty_bps"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise TypeError(f"{name} must fit u16, got {value}")


# ---------------------------------------------------------------------------
# Worker configuration
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class WorkerConfig:
    """Temporal connection settings."""

    target_host: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = TASK_QUEUE

    def __post_init__(self) -> None:
        if not self.target_host:
            raise TypeError("WorkerConfig.target_host must be non-empty")
        if not self.task_queue:
            raise TypeError("WorkerConfig.task_queue must be non-empty")
