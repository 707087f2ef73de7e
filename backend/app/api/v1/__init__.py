from fastapi import APIRouter

from app.api.v1 import (
    analytics,
    auth,
    bonuses,
    companies,
    employees,
    ens,
    ledger,
    payroll,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(bonuses.router, prefix="/bonuses", tags=["bonuses"])
api_router.include_router(payroll.router, prefix="/payroll", tags=["payroll"])
api_router.include_router(companies.router, prefix="/companies", tags=["companies"])
api_router.include_router(ens.router, prefix="/ens", tags=["ens"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
# In-process PayrollManager; rule violations surface as LedgerError
api_router.include_router(ledger.router, prefix="/ledger", tags=["ledger"])
