"""
Payroll Ledger

In-process model of the PayrollManager contract. It enforces the same
rules and reverts with the same reason strings, so the API can validate
payroll operations before (or instead of) sending them on-chain.

Amounts are integers in the token's smallest unit (wei for ETH).
Every mutating call takes the caller's address; owner-only operations
revert with ``Ownable: caller is not the owner``. Each operation checks
all of its preconditions before touching state, so a revert leaves the
ledger unchanged.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.core.config import ZERO_ADDRESS, settings
from app.core.wallet import KNOWN_TOKENS, namehash, normalize_address, subnode
from app.services.payment_schedule import (
    PaymentFrequency,
    is_payment_due,
    parse_frequency,
    payment_interval,
)

logger = logging.getLogger("web3payroll.ledger")

ENS_REGISTRY_ADDRESS = "0x00000000000c2e074ec69a0dfb2997ba6c7d2e1e"

_FREQUENCY_ORDER = list(PaymentFrequency)


class LedgerError(Exception):
    """A ledger rule was violated; ``reason`` matches the contract's revert string."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass
class LedgerEmployee:
    wallet_address: str
    salary_amount: int
    ens_subdomain: str
    ens_node: str
    frequency: PaymentFrequency
    preferred_token: str
    position: str
    department: str
    is_active: bool = True
    last_payment_at: Optional[datetime] = None
    total_paid: int = 0
    added_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["frequency"] = self.frequency.value
        return data


@dataclass
class LedgerBonus:
    id: int
    recipient: str
    amount: int
    reason: str
    token: str
    distributed: bool = False
    created_at: Optional[datetime] = None
    distributed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LedgerEvent:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_frequency(value) -> PaymentFrequency:
    """Accept an enum member, its name, or the contract's ordinal (0=WEEKLY .. 3=QUARTERLY)."""
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value < len(_FREQUENCY_ORDER):
            return _FREQUENCY_ORDER[value]
        raise LedgerError("Invalid payment frequency")
    frequency = parse_frequency(value)
    if frequency is None:
        raise LedgerError("Invalid payment frequency")
    return frequency


class PayrollLedger:
    """
    Employee registry, treasury balances and bonuses of one company.

    Args:
        owner: Address allowed to run owner-only operations
        company_domain: ENS name whose namehash is the company node
        ens_registry: ENS registry address recorded for reference
        public_resolver: Resolver used for employee subdomains
        clock: Source of the current time (utcnow by default)
    """

    def __init__(
        self,
        owner: str,
        company_domain: str,
        ens_registry: str = ENS_REGISTRY_ADDRESS,
        public_resolver: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.owner = normalize_address(owner)
        self.company_domain = company_domain.lower()
        self.company_node = namehash(self.company_domain)
        self.ens_registry = ens_registry.lower()
        self.public_resolver = (public_resolver or settings.ENS_DEFAULT_RESOLVER).lower()
        self._clock = clock

        self.paused = False
        self.authorized_tokens: Dict[str, bool] = {
            address.lower(): True for address in KNOWN_TOKENS.values()
        }
        self.balances: Dict[str, int] = {}
        self.employees: Dict[str, LedgerEmployee] = {}
        self.ens_to_employee: Dict[str, str] = {}
        self.bonuses: List[LedgerBonus] = []
        self.employee_bonuses: Dict[str, List[int]] = {}
        self.events: List[LedgerEvent] = []

    # -- guards ---------------------------------------------------------

    def _only_owner(self, caller: str) -> None:
        if (caller or "").lower() != self.owner:
            raise LedgerError("Ownable: caller is not the owner")

    def _when_not_paused(self) -> None:
        if self.paused:
            raise LedgerError("Pausable: paused")

    def _active_employee(self, wallet: str) -> LedgerEmployee:
        employee = self.employees.get((wallet or "").lower())
        if employee is None or not employee.is_active:
            raise LedgerError("Employee not active")
        return employee

    def _require_balance(self, token: str, amount: int) -> None:
        if self.balances.get(token, 0) < amount:
            raise LedgerError(
                "Insufficient ETH balance" if token == ZERO_ADDRESS else "Insufficient token balance"
            )

    def _emit(self, name: str, **args) -> None:
        self.events.append(LedgerEvent(name=name, args=args, timestamp=self._clock()))
        logger.info(f"Ledger event {name}: {args}")

    # -- views ----------------------------------------------------------

    @property
    def total_employees(self) -> int:
        return sum(1 for employee in self.employees.values() if employee.is_active)

    @property
    def total_bonuses(self) -> int:
        return len(self.bonuses)

    def balance_of(self, token: str = ZERO_ADDRESS) -> int:
        return self.balances.get(token.lower(), 0)

    def is_token_authorized(self, token: str) -> bool:
        return self.authorized_tokens.get(token.lower(), False)

    def get_employee(self, wallet: str) -> Optional[LedgerEmployee]:
        return self.employees.get((wallet or "").lower())

    def employee_node(self, subdomain: str) -> str:
        """keccak256(company_node ++ labelhash(subdomain))."""
        return subnode(self.company_node, subdomain)

    @staticmethod
    def get_payment_interval(frequency) -> int:
        """Payment interval in seconds."""
        return int(payment_interval(to_frequency(frequency)).total_seconds())

    def calculate_payment_amount(self, wallet: str) -> int:
        return self._active_employee(wallet).salary_amount

    def is_payment_due(self, wallet: str) -> bool:
        employee = self._active_employee(wallet)
        return is_payment_due(employee.last_payment_at, employee.frequency, self._clock())

    def get_bonus(self, bonus_id: int) -> LedgerBonus:
        if bonus_id < 0 or bonus_id >= len(self.bonuses):
            raise LedgerError("Bonus does not exist")
        return self.bonuses[bonus_id]

    def get_employee_bonuses(self, wallet: str) -> List[int]:
        return list(self.employee_bonuses.get((wallet or "").lower(), []))

    def resolve_ens_to_employee(self, node: str) -> str:
        return self.ens_to_employee.get((node or "").lower(), ZERO_ADDRESS)

    # -- treasury -------------------------------------------------------

    def deposit(self, caller: str, amount: int, token: str = ZERO_ADDRESS) -> int:
        """Fund the ledger; anyone may deposit an authorized token."""
        token = token.lower()
        if amount <= 0:
            raise LedgerError("Amount must be greater than 0")
        if not self.is_token_authorized(token):
            raise LedgerError("Token not authorized")
        self.balances[token] = self.balances.get(token, 0) + amount
        self._emit("FundsDeposited", sender=(caller or "").lower(), token=token, amount=amount)
        return self.balances[token]

    def emergency_withdraw(self, caller: str, token: str, amount: int) -> None:
        self._only_owner(caller)
        token = token.lower()
        if amount <= 0:
            raise LedgerError("Amount must be greater than 0")
        self._require_balance(token, amount)
        self.balances[token] = self.balances.get(token, 0) - amount
        self._emit("EmergencyWithdraw", token=token, amount=amount, to=self.owner)

    def set_token_authorization(self, caller: str, token: str, authorized: bool) -> None:
        self._only_owner(caller)
        token = normalize_address(token)
        self.authorized_tokens[token] = authorized
        self._emit("TokenAuthorized", token=token, authorized=authorized)

    # -- pause ----------------------------------------------------------

    def pause(self, caller: str) -> None:
        self._only_owner(caller)
        self._when_not_paused()
        self.paused = True
        self._emit("Paused", account=caller.lower())

    def unpause(self, caller: str) -> None:
        self._only_owner(caller)
        if not self.paused:
            raise LedgerError("Pausable: not paused")
        self.paused = False
        self._emit("Unpaused", account=caller.lower())

    # -- employees ------------------------------------------------------

    def add_employee(
        self,
        caller: str,
        wallet: str,
        salary: int,
        subdomain: str,
        frequency,
        token: str = ZERO_ADDRESS,
        position: str = "",
        department: str = "",
    ) -> LedgerEmployee:
        self._only_owner(caller)
        self._when_not_paused()
        wallet = normalize_address(wallet)
        token = token.lower()
        frequency = to_frequency(frequency)
        if salary <= 0:
            raise LedgerError("Salary must be greater than 0")
        if not self.is_token_authorized(token):
            raise LedgerError("Token not authorized")
        existing = self.employees.get(wallet)
        if existing is not None and existing.is_active:
            raise LedgerError("Employee already exists")

        subdomain = subdomain.lower()
        node = self.employee_node(subdomain)
        employee = LedgerEmployee(
            wallet_address=wallet,
            salary_amount=salary,
            ens_subdomain=subdomain,
            ens_node=node,
            frequency=frequency,
            preferred_token=token,
            position=position,
            department=department,
            added_at=self._clock(),
        )
        if existing is not None:
            employee.total_paid = existing.total_paid
            self.ens_to_employee.pop(existing.ens_node, None)
        self.employees[wallet] = employee
        self.ens_to_employee[node] = wallet
        self._emit(
            "EmployeeAdded",
            employee=wallet,
            ens_subdomain=subdomain,
            ens_node=node,
            salary=salary,
            frequency=frequency.value,
        )
        return employee

    def remove_employee(self, caller: str, wallet: str) -> None:
        self._only_owner(caller)
        self._when_not_paused()
        employee = self._active_employee(wallet)
        employee.is_active = False
        self.ens_to_employee.pop(employee.ens_node, None)
        self._emit("EmployeeRemoved", employee=employee.wallet_address)

    def update_employee(self, caller: str, wallet: str, salary: int, frequency) -> LedgerEmployee:
        self._only_owner(caller)
        self._when_not_paused()
        employee = self._active_employee(wallet)
        frequency = to_frequency(frequency)
        if salary <= 0:
            raise LedgerError("Salary must be greater than 0")
        employee.salary_amount = salary
        employee.frequency = frequency
        self._emit(
            "EmployeeUpdated",
            employee=employee.wallet_address,
            salary=salary,
            frequency=frequency.value,
        )
        return employee

    # -- payments -------------------------------------------------------

    def _pay(self, employee: LedgerEmployee, now: datetime) -> None:
        token = employee.preferred_token
        self.balances[token] -= employee.salary_amount
        employee.last_payment_at = now
        employee.total_paid += employee.salary_amount
        self._emit(
            "PaymentProcessed",
            employee=employee.wallet_address,
            amount=employee.salary_amount,
            token=token,
            timestamp=now,
        )

    def process_individual_payment(self, caller: str, wallet: str) -> LedgerEmployee:
        self._only_owner(caller)
        self._when_not_paused()
        employee = self._active_employee(wallet)
        self._require_balance(employee.preferred_token, employee.salary_amount)
        self._pay(employee, self._clock())
        return employee

    def process_payroll(self, caller: str, wallets: Iterable[str]) -> List[LedgerEmployee]:
        """
        Pay every listed employee, or none of them.

        Raises:
            LedgerError: if any employee is inactive or a token balance
                cannot cover the whole batch
        """
        self._only_owner(caller)
        self._when_not_paused()
        batch = [self._active_employee(wallet) for wallet in wallets]

        required: Dict[str, int] = {}
        for employee in batch:
            required[employee.preferred_token] = (
                required.get(employee.preferred_token, 0) + employee.salary_amount
            )
        for token, amount in required.items():
            self._require_balance(token, amount)

        now = self._clock()
        for employee in batch:
            self._pay(employee, now)
        return batch

    # -- bonuses --------------------------------------------------------

    def create_bonus(
        self,
        caller: str,
        recipient: str,
        amount: int,
        reason: str,
        token: str = ZERO_ADDRESS,
    ) -> LedgerBonus:
        self._only_owner(caller)
        self._when_not_paused()
        employee = self._active_employee(recipient)
        token = token.lower()
        if amount <= 0:
            raise LedgerError("Bonus amount must be greater than 0")
        if not self.is_token_authorized(token):
            raise LedgerError("Token not authorized")

        bonus = LedgerBonus(
            id=len(self.bonuses),
            recipient=employee.wallet_address,
            amount=amount,
            reason=reason,
            token=token,
            created_at=self._clock(),
        )
        self.bonuses.append(bonus)
        self.employee_bonuses.setdefault(employee.wallet_address, []).append(bonus.id)
        self._emit(
            "BonusCreated",
            bonus_id=bonus.id,
            recipient=bonus.recipient,
            amount=amount,
            reason=reason,
        )
        return bonus

    def distribute_bonus(self, caller: str, bonus_id: int) -> LedgerBonus:
        self._only_owner(caller)
        self._when_not_paused()
        bonus = self.get_bonus(bonus_id)
        if bonus.distributed:
            raise LedgerError("Bonus already distributed")
        self._require_balance(bonus.token, bonus.amount)

        self.balances[bonus.token] -= bonus.amount
        bonus.distributed = True
        bonus.distributed_at = self._clock()
        self._emit(
            "BonusDistributed",
            bonus_id=bonus.id,
            recipient=bonus.recipient,
            amount=bonus.amount,
            token=bonus.token,
        )
        return bonus

    def status(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "company_domain": self.company_domain,
            "company_node": self.company_node,
            "ens_registry": self.ens_registry,
            "public_resolver": self.public_resolver,
            "paused": self.paused,
            "total_employees": self.total_employees,
            "total_bonuses": self.total_bonuses,
            "balances": {token: str(amount) for token, amount in self.balances.items()},
        }


_ledger: Optional[PayrollLedger] = None


def get_payroll_ledger() -> PayrollLedger:
    """Process-wide ledger owned by LEDGER_OWNER_ADDRESS (FastAPI dependency)."""
    global _ledger
    if _ledger is None:
        _ledger = PayrollLedger(
            owner=settings.LEDGER_OWNER_ADDRESS,
            company_domain=settings.LEDGER_COMPANY_DOMAIN,
        )
    return _ledger
