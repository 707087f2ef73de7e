"""
Payroll ledger: PayrollManager operations against the in-process ledger.

Requests carry amounts in ether units; responses report wei as strings.
Rule violations raise ``LedgerError`` and are rendered as 400 by the app.
"""

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from web3 import Web3

from app.api.deps import CurrentUser, get_current_user
from app.core.config import ZERO_ADDRESS
from app.schemas.common import MessageResponse
from app.schemas.ledger import (
    LedgerBatchPayment,
    LedgerBonusCreate,
    LedgerBonusResponse,
    LedgerDeposit,
    LedgerEmployeeCreate,
    LedgerEmployeeResponse,
    LedgerEmployeeUpdate,
    LedgerEventResponse,
    LedgerStatus,
    LedgerWithdraw,
    TokenAuthorization,
)
from app.services.payroll_ledger import (
    LedgerBonus,
    LedgerEmployee,
    PayrollLedger,
    get_payroll_ledger,
)

router = APIRouter()


def to_wei(amount: str) -> int:
    return int(Web3.to_wei(Decimal(amount), "ether"))


def _employee_response(ledger: PayrollLedger, employee: LedgerEmployee) -> LedgerEmployeeResponse:
    return LedgerEmployeeResponse(
        wallet_address=employee.wallet_address,
        salary_amount=str(employee.salary_amount),
        ens_subdomain=employee.ens_subdomain,
        ens_node=employee.ens_node,
        frequency=employee.frequency.value,
        preferred_token=employee.preferred_token,
        position=employee.position,
        department=employee.department,
        is_active=employee.is_active,
        last_payment_at=employee.last_payment_at,
        total_paid=str(employee.total_paid),
        payment_due=employee.is_active and ledger.is_payment_due(employee.wallet_address),
    )


def _bonus_response(bonus: LedgerBonus) -> LedgerBonusResponse:
    data = bonus.to_dict()
    data["amount"] = str(bonus.amount)
    return LedgerBonusResponse(**data)


@router.get("/status", response_model=LedgerStatus)
async def ledger_status(ledger: PayrollLedger = Depends(get_payroll_ledger)):
    return LedgerStatus(**ledger.status())


@router.get("/balance")
async def ledger_balance(
    token: str = ZERO_ADDRESS,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
):
    return {"token": token.lower(), "balance": str(ledger.balance_of(token))}


@router.post("/deposit")
async def deposit(
    request: LedgerDeposit,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    balance = ledger.deposit(current_user.address, to_wei(request.amount), request.token)
    return {"success": True, "token": request.token.lower(), "balance": str(balance)}


@router.post("/emergency-withdraw", response_model=MessageResponse)
async def emergency_withdraw(
    request: LedgerWithdraw,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    ledger.emergency_withdraw(current_user.address, request.token, to_wei(request.amount))
    return MessageResponse(message="Funds withdrawn to owner")


@router.post("/pause", response_model=MessageResponse)
async def pause(
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    ledger.pause(current_user.address)
    return MessageResponse(message="Ledger paused")


@router.post("/unpause", response_model=MessageResponse)
async def unpause(
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    ledger.unpause(current_user.address)
    return MessageResponse(message="Ledger unpaused")


@router.post("/tokens", response_model=MessageResponse)
async def set_token_authorization(
    request: TokenAuthorization,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    ledger.set_token_authorization(current_user.address, request.token, request.authorized)
    state = "authorized" if request.authorized else "deauthorized"
    return MessageResponse(message=f"Token {request.token.lower()} {state}")


@router.get("/tokens/{token}")
async def token_authorization(token: str, ledger: PayrollLedger = Depends(get_payroll_ledger)):
    return {"token": token.lower(), "authorized": ledger.is_token_authorized(token)}


@router.post("/employees", response_model=LedgerEmployeeResponse, status_code=201)
async def add_employee(
    request: LedgerEmployeeCreate,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = ledger.add_employee(
        current_user.address,
        request.wallet_address,
        to_wei(request.salary),
        request.subdomain,
        request.frequency,
        request.token,
        request.position,
        request.department,
    )
    return _employee_response(ledger, employee)


@router.get("/employees/{wallet}", response_model=LedgerEmployeeResponse)
async def get_employee(wallet: str, ledger: PayrollLedger = Depends(get_payroll_ledger)):
    employee = ledger.get_employee(wallet)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return _employee_response(ledger, employee)


@router.put("/employees/{wallet}", response_model=LedgerEmployeeResponse)
async def update_employee(
    wallet: str,
    request: LedgerEmployeeUpdate,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = ledger.update_employee(
        current_user.address, wallet, to_wei(request.salary), request.frequency
    )
    return _employee_response(ledger, employee)


@router.delete("/employees/{wallet}", response_model=MessageResponse)
async def remove_employee(
    wallet: str,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    ledger.remove_employee(current_user.address, wallet)
    return MessageResponse(message="Employee removed")


@router.get("/employees/{wallet}/bonuses", response_model=List[LedgerBonusResponse])
async def employee_bonuses(wallet: str, ledger: PayrollLedger = Depends(get_payroll_ledger)):
    return [_bonus_response(ledger.get_bonus(i)) for i in ledger.get_employee_bonuses(wallet)]


@router.get("/intervals/{frequency}")
async def payment_interval(frequency: str):
    return {"frequency": frequency.upper(), "seconds": PayrollLedger.get_payment_interval(frequency)}


@router.post("/payments/{wallet}", response_model=LedgerEmployeeResponse)
async def process_individual_payment(
    wallet: str,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = ledger.process_individual_payment(current_user.address, wallet)
    return _employee_response(ledger, employee)


@router.post("/payments", response_model=List[LedgerEmployeeResponse])
async def process_payroll(
    request: LedgerBatchPayment,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Pay every listed employee, or none of them."""
    paid = ledger.process_payroll(current_user.address, request.wallets)
    return [_employee_response(ledger, e) for e in paid]


@router.post("/bonuses", response_model=LedgerBonusResponse, status_code=201)
async def create_bonus(
    request: LedgerBonusCreate,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    bonus = ledger.create_bonus(
        current_user.address, request.recipient, to_wei(request.amount), request.reason, request.token
    )
    return _bonus_response(bonus)


@router.get("/bonuses/{bonus_id}", response_model=LedgerBonusResponse)
async def get_bonus(bonus_id: int, ledger: PayrollLedger = Depends(get_payroll_ledger)):
    if bonus_id < 0 or bonus_id >= ledger.total_bonuses:
        raise HTTPException(status_code=404, detail="Bonus not found")
    return _bonus_response(ledger.get_bonus(bonus_id))


@router.post("/bonuses/{bonus_id}/distribute", response_model=LedgerBonusResponse)
async def distribute_bonus(
    bonus_id: int,
    ledger: PayrollLedger = Depends(get_payroll_ledger),
    current_user: CurrentUser = Depends(get_current_user),
):
    return _bonus_response(ledger.distribute_bonus(current_user.address, bonus_id))


@router.get("/ens/{subdomain}")
async def resolve_employee_subdomain(subdomain: str, ledger: PayrollLedger = Depends(get_payroll_ledger)):
    """Employee wallet behind ``<subdomain>.<company domain>``; zero address if none."""
    node = ledger.employee_node(subdomain)
    return {
        "subdomain": subdomain.lower(),
        "node": node,
        "employee": ledger.resolve_ens_to_employee(node),
    }


@router.get("/events", response_model=List[LedgerEventResponse])
async def ledger_events(
    limit: int = Query(50, ge=1, le=500),
    ledger: PayrollLedger = Depends(get_payroll_ledger),
):
    """Most recent ledger events, newest first."""
    return [
        LedgerEventResponse(**event.to_dict())
        for event in reversed(ledger.events[-limit:])
    ]
