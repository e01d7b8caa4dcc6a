# Machine Telemetry — Database Models
# Import all models here for SQLAlchemy discovery

from machine_telemetry.models.operation_log import OperationLog      # noqa
from machine_telemetry.models.machine_status import MachineStatus    # noqa
