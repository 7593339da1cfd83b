"""Tests for rentflow.infra.config: protocol and worker configuration."""

from __future__ import annotations

import dataclasses

import pytest

from rentflow.core.types import Address
from rentflow.infra.config import (
    RENTFLOW_PROGRAM_ID,
    TASK_QUEUE,
    ProtocolConfig,
    WorkerConfig,
)
from rentflow.oracle.signature_instruction import ED25519_PROGRAM_ID

_ADMIN = Address.from_seed("admin")
_ORACLE = Address.from_seed("oracle")


class TestProtocolConfig:
    def test_defaults(self) -> None:
        cfg = ProtocolConfig(admin=_ADMIN, oracle_key=_ORACLE)
        assert cfg.program_id == RENTFLOW_PROGRAM_ID
        assert cfg.verifier_program_id == ED25519_PROGRAM_ID
        assert cfg.grace_period_seconds == 604_800
        assert (cfg.yield_bps, cfg.penalty_bps) == (1000, 500)
        assert cfg.enforce_ltv
        assert not cfg.allow_defaulted_withdrawal

    def test_frozen(self) -> None:
        cfg = ProtocolConfig(admin=_ADMIN, oracle_key=_ORACLE)
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.yield_bps = 1  # type: ignore[misc]

    def test_negative_grace(self) -> None:
        with pytest.raises(TypeError):
            ProtocolConfig(admin=_ADMIN, oracle_key=_ORACLE, grace_period_seconds=-1)

    def test_bps_must_fit_u16(self) -> None:
        with pytest.raises(TypeError):
            ProtocolConfig(admin=_ADMIN, oracle_key=_ORACLE, yield_bps=70_000)


class TestWorkerConfig:
    def test_defaults(self) -> None:
        cfg = WorkerConfig()
        assert cfg.target_host == "localhost:7233"
        assert cfg.namespace == "default"
        assert cfg.task_queue == TASK_QUEUE

    def test_empty_queue(self) -> None:
        with pytest.raises(TypeError):
            WorkerConfig(task_queue="")
