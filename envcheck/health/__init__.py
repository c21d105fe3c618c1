"""Health subsystem — checks, registry, runner, aggregation, result logging."""

from .checks import Check, CheckOutcome, build_check, execute
from .log_policy import ResultLogger
from .registry import CheckEntry, CheckRegistry
from .report import Aggregate, HealthReport, aggregate
from .runner import CheckResult, CheckRunner
from .severity import ALERT, Severity
