"""rentflow.workflow -- Temporal.io activities for the RentFlow instructions."""

from rentflow.workflow.activities import (
    RentFlowActivities as RentFlowActivities,
)
from rentflow.workflow.types import (
    BookingProofInput as BookingProofInput,
)
from rentflow.workflow.types import (
    DepositCollateralInput as DepositCollateralInput,
)
from rentflow.workflow.types import (
    DepositLiquidityInput as DepositLiquidityInput,
)
from rentflow.workflow.types import (
    InstructionInput as InstructionInput,
)
from rentflow.workflow.types import (
    InstructionOutput as InstructionOutput,
)
from rentflow.workflow.types import (
    IntegratorInput as IntegratorInput,
)
from rentflow.workflow.types import (
    MintBookingInput as MintBookingInput,
)
from rentflow.workflow.types import (
    ObligationInput as ObligationInput,
)
from rentflow.workflow.types import (
    RequestInput as RequestInput,
)
from rentflow.workflow.types import (
    SettleBookingInput as SettleBookingInput,
)
from rentflow.workflow.types import (
    SupportedAssetInput as SupportedAssetInput,
)
from rentflow.workflow.types import (
    WithdrawLiquidityInput as WithdrawLiquidityInput,
)
