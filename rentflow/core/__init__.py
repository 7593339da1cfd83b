"""rentflow.core: public API for all core types."""

from rentflow.core.checked_math import BPS_DENOMINATOR as BPS_DENOMINATOR
from rentflow.core.checked_math import U64_MAX as U64_MAX
from rentflow.core.checked_math import apply_bps as apply_bps
from rentflow.core.checked_math import checked_add as checked_add
from rentflow.core.checked_math import checked_add_i64 as checked_add_i64
from rentflow.core.checked_math import checked_div as checked_div
from rentflow.core.checked_math import checked_mul as checked_mul
from rentflow.core.checked_math import checked_sub as checked_sub
from rentflow.core.errors import (
    AuthorizationError as AuthorizationError,
)
from rentflow.core.errors import (
    CustodyError as CustodyError,
)
from rentflow.core.errors import (
    ErrorCode as ErrorCode,
)
from rentflow.core.errors import (
    InputError as InputError,
)
from rentflow.core.errors import (
    LifecycleError as LifecycleError,
)
from rentflow.core.errors import (
    MathError as MathError,
)
from rentflow.core.errors import (
    PersistenceError as PersistenceError,
)
from rentflow.core.errors import (
    ProofError as ProofError,
)
from rentflow.core.errors import (
    RentFlowError as RentFlowError,
)
from rentflow.core.identifiers import (
    DerivedSigner as DerivedSigner,
)
from rentflow.core.identifiers import (
    WalletSigner as WalletSigner,
)
from rentflow.core.identifiers import (
    create_derived_address as create_derived_address,
)
from rentflow.core.identifiers import (
    find_derived_address as find_derived_address,
)
from rentflow.core.result import Err as Err
from rentflow.core.result import Ok as Ok
from rentflow.core.result import Result as Result
from rentflow.core.result import unwrap as unwrap
from rentflow.core.types import Address as Address
from rentflow.core.types import BookingId as BookingId
from rentflow.core.types import UtcDatetime as UtcDatetime
