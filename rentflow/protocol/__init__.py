"""rentflow.protocol: records, settlement math, and instruction handlers.

The program facade lives in rentflow.protocol.program; import it from there.
"""

from rentflow.protocol.settlement import GRACE_PERIOD_SECONDS as GRACE_PERIOD_SECONDS
from rentflow.protocol.settlement import PENALTY_BPS as PENALTY_BPS
from rentflow.protocol.settlement import YIELD_BPS as YIELD_BPS
from rentflow.protocol.settlement import RepaymentQuote as RepaymentQuote
from rentflow.protocol.settlement import liquidation_threshold as liquidation_threshold
from rentflow.protocol.settlement import max_principal as max_principal
from rentflow.protocol.settlement import repayment_quote as repayment_quote
from rentflow.protocol.settlement import tier_profit as tier_profit
from rentflow.protocol.settlement import total_repayment as total_repayment
from rentflow.protocol.state import BookingObligation as BookingObligation
from rentflow.protocol.state import IntegratorAuthorization as IntegratorAuthorization
from rentflow.protocol.state import InvestmentTerm as InvestmentTerm
from rentflow.protocol.state import LiquidityPosition as LiquidityPosition
from rentflow.protocol.state import ObligationStatus as ObligationStatus
from rentflow.protocol.state import PoolVault as PoolVault
from rentflow.protocol.state import ProfitTier as ProfitTier
from rentflow.protocol.state import SupportedAssetConfig as SupportedAssetConfig
from rentflow.protocol.state import decode_record as decode_record
from rentflow.protocol.state import encode_record as encode_record
