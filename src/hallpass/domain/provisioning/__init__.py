"""Hallpass Domain Provisioning -- sign-up / sign-in saga with compensation."""

from hallpass.domain.provisioning.compensation import CompensationAction, CompensationStack
from hallpass.domain.provisioning.outcome import ProvisioningOutcome, ProvisioningStage
from hallpass.domain.provisioning.saga import ProvisioningSaga
from hallpass.domain.provisioning.settings import (
    ProvisioningSettings,
    get_provisioning_settings,
)
from hallpass.domain.provisioning.state import SagaRun, SagaState

__all__ = [
    "CompensationAction",
    "CompensationStack",
    "ProvisioningOutcome",
    "ProvisioningSaga",
    "ProvisioningSettings",
    "ProvisioningStage",
    "SagaRun",
    "SagaState",
    "get_provisioning_settings",
]
