"""rentflow.infra: configuration, infrastructure protocols and in-memory adapters."""

from rentflow.infra.config import RENTFLOW_PROGRAM_ID as RENTFLOW_PROGRAM_ID
from rentflow.infra.config import TASK_QUEUE as TASK_QUEUE
from rentflow.infra.config import ProtocolConfig as ProtocolConfig
from rentflow.infra.config import WorkerConfig as WorkerConfig
from rentflow.infra.memory_adapter import InMemoryProgramLog as InMemoryProgramLog
from rentflow.infra.memory_adapter import InMemoryRecordStore as InMemoryRecordStore
from rentflow.infra.protocols import CustodyGateway as CustodyGateway
from rentflow.infra.protocols import ProgramLog as ProgramLog
from rentflow.infra.protocols import RecordStore as RecordStore
