# Services Package

from app.services.analytics_service import AnalyticsService, analytics_service
from app.services.ens_service import AvailabilityResult, ENSService, get_ens_service
from app.services.payroll_ledger import LedgerError, PayrollLedger, get_payroll_ledger
from app.services.payroll_service import pay_employees
