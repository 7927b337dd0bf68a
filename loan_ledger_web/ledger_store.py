"""Persistence layer for ledger loans and their transactions.

The web app keeps loans and payments in a database and hands them to the
calculation core as ``LoanTerms`` and ``TransactionRecord`` objects. It
defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).

Amounts are stored as text so that ``Decimal`` values come back exactly as
they were written.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, create_engine, func, select
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from loan_ledger.data_models import (
    InterestCalc,
    InterestEvery,
    LoanTerms,
    LoanType,
    TransactionRecord,
    TransactionType,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

STATUS_ACTIVE = "ACTIVE"
STATUS_CLOSED = "CLOSED"
STATUS_DELETED = "DELETED"
# Statuses a loan may be moved to by an update; deletion has its own call.
UPDATABLE_STATUSES = (STATUS_ACTIVE, STATUS_CLOSED)

BILL_NUMBER_BASE = 310000


class LoanModel(Base):
    __tablename__ = "loans"

    id = Column(String(64), primary_key=True)
    bill_number = Column(String(64), nullable=True)
    borrower = Column(String(255), nullable=True)
    principal = Column(String(32), nullable=False)
    interest_rate = Column(String(32), nullable=False, default="0")
    loan_type = Column(String(32), nullable=False, default=LoanType.WITH_INTEREST.value)
    interest_calc = Column(String(32), nullable=False, default=InterestCalc.MONTHLY.value)
    interest_every = Column(String(32), nullable=False, default=InterestEvery.MONTHLY.value)
    has_compounding = Column(Boolean, nullable=False, default=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    process_fee = Column(String(32), nullable=False, default="0")
    has_emi = Column(Boolean, nullable=False, default=False)
    number_of_emi = Column(Integer, nullable=False, default=0)
    remarks = Column(String(1024), nullable=True)
    status = Column(String(16), nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    transactions = relationship(
        "TransactionModel",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="TransactionModel.date",
    )


class TransactionModel(Base):
    __tablename__ = "loan_transactions"

    id = Column(String(64), primary_key=True)
    loan_id = Column(String(64), ForeignKey("loans.id"), index=True, nullable=False)
    amount = Column(String(32), nullable=False)
    type = Column(String(16), nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    loan = relationship("LoanModel", back_populates="transactions")


def _day(value: date) -> date:
    # Date columns hold calendar days only.
    return value.date() if isinstance(value, datetime) else value


def parse_status(value: object) -> str:
    """Normalise a status for ``LedgerStore.update_loan``."""
    status = str(value or "").strip().upper()
    if status not in UPDATABLE_STATUSES:
        raise ValueError(f"Invalid status: {value} (expected one of {', '.join(UPDATABLE_STATUSES)})")
    return status


class LedgerStore:
    """Database-backed loan store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def add_loan(
        self,
        terms: LoanTerms,
        *,
        bill_number: Optional[str] = None,
        borrower: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> str:
        """Store a loan and return its id.

        Without a bill number the next one in sequence is assigned: 310001 for
        the first loan ever stored, counting deleted loans too.
        """
        loan_id = uuid4().hex
        row = LoanModel(
            id=loan_id,
            bill_number=bill_number,
            borrower=borrower,
            remarks=remarks,
            principal=str(terms.principal),
            interest_rate=str(terms.annual_rate_percent),
            loan_type=terms.loan_type.value,
            interest_calc=terms.interest_calc.value,
            interest_every=terms.interest_every.value,
            has_compounding=terms.has_compounding,
            start_date=_day(terms.start_date),
            end_date=_day(terms.end_date) if terms.end_date is not None else None,
            process_fee=str(terms.process_fee),
            has_emi=terms.has_emi,
            number_of_emi=terms.number_of_emi,
            status=STATUS_ACTIVE,
        )
        with self._session_factory() as session:
            if not row.bill_number:
                count = session.scalar(select(func.count()).select_from(LoanModel))
                row.bill_number = str(BILL_NUMBER_BASE + count + 1)
            session.add(row)
            session.commit()
        logger.info("stored loan %s, bill %s (principal %s)", loan_id, row.bill_number, terms.principal)
        return loan_id

    def get_loan(self, loan_id: str) -> Optional[Tuple[Dict[str, object], LoanTerms, List[TransactionRecord]]]:
        """Return ``(info, terms, transactions)`` for a loan, or ``None``."""
        with self._session_factory() as session:
            row = session.get(LoanModel, loan_id)
            if row is None or row.status == STATUS_DELETED:
                return None
            return self._to_info(row), self._to_terms(row), self._to_transactions(row.transactions)

    def list_loans(
        self, borrower: Optional[str] = None
    ) -> List[Tuple[Dict[str, object], LoanTerms, List[TransactionRecord]]]:
        """Return every loan that is not deleted, newest first, optionally for one borrower."""
        query = select(LoanModel).where(LoanModel.status != STATUS_DELETED)
        if borrower:
            query = query.where(LoanModel.borrower == borrower)
        with self._session_factory() as session:
            rows: Iterable[LoanModel] = session.execute(
                query.order_by(LoanModel.created_at.desc())
            ).scalars().all()
            return [
                (self._to_info(row), self._to_terms(row), self._to_transactions(row.transactions))
                for row in rows
            ]

    def update_loan(self, loan_id: str, **changes: object) -> bool:
        """Change ``end_date``, ``status``, ``bill_number`` or ``remarks`` of a loan.

        Returns ``False`` if the loan is unknown or deleted. Setting an end
        date on a loan stops its interest from accruing past that day.
        """
        unknown = set(changes) - {"end_date", "status", "bill_number", "remarks"}
        if unknown:
            raise ValueError(f"Cannot update loan fields: {', '.join(sorted(unknown))}")
        with self._session_factory() as session:
            row = session.get(LoanModel, loan_id)
            if row is None or row.status == STATUS_DELETED:
                return False
            if "end_date" in changes:
                end_date = changes["end_date"]
                row.end_date = _day(end_date) if end_date is not None else None
            if "status" in changes:
                row.status = parse_status(changes["status"])
            if "bill_number" in changes:
                row.bill_number = changes["bill_number"]
            if "remarks" in changes:
                row.remarks = changes["remarks"]
            session.commit()
        logger.info("updated loan %s (%s)", loan_id, ", ".join(sorted(changes)))
        return True

    def add_transaction(self, loan_id: str, transaction: TransactionRecord) -> bool:
        """Record a payment or top-up. Returns ``False`` if the loan is unknown."""
        with self._session_factory() as session:
            loan = session.get(LoanModel, loan_id)
            if loan is None or loan.status == STATUS_DELETED:
                return False
            session.add(
                TransactionModel(
                    id=uuid4().hex,
                    loan_id=loan_id,
                    amount=str(transaction.amount),
                    type=transaction.type.value,
                    date=_day(transaction.date),
                )
            )
            session.commit()
        logger.info("stored %s of %s for loan %s", transaction.type.value, transaction.amount, loan_id)
        return True

    def list_transactions(self, loan_id: str) -> List[TransactionRecord]:
        with self._session_factory() as session:
            rows = session.execute(
                select(TransactionModel)
                .where(TransactionModel.loan_id == loan_id)
                .order_by(TransactionModel.date.asc())
            ).scalars().all()
            return self._to_transactions(rows)

    def delete_loan(self, loan_id: str) -> bool:
        """Mark a loan as deleted; it disappears from listings and totals."""
        with self._session_factory() as session:
            row = session.get(LoanModel, loan_id)
            if row is None or row.status == STATUS_DELETED:
                return False
            row.status = STATUS_DELETED
            session.commit()
        logger.info("deleted loan %s", loan_id)
        return True

    @staticmethod
    def _to_terms(row: LoanModel) -> LoanTerms:
        return LoanTerms(
            principal=Decimal(row.principal),
            annual_rate_percent=Decimal(row.interest_rate),
            loan_type=LoanType.parse(row.loan_type),
            interest_calc=InterestCalc.parse(row.interest_calc),
            interest_every=InterestEvery.parse(row.interest_every),
            has_compounding=bool(row.has_compounding),
            start_date=row.start_date,
            end_date=row.end_date,
            process_fee=Decimal(row.process_fee),
            has_emi=bool(row.has_emi),
            number_of_emi=row.number_of_emi or 0,
        )

    @staticmethod
    def _to_transactions(rows: Iterable[TransactionModel]) -> List[TransactionRecord]:
        return [
            TransactionRecord(amount=Decimal(t.amount), type=TransactionType.parse(t.type), date=t.date)
            for t in rows
        ]

    @staticmethod
    def _to_info(row: LoanModel) -> Dict[str, object]:
        return {
            "id": row.id,
            "billNumber": row.bill_number,
            "borrower": row.borrower,
            "status": row.status,
            "remarks": row.remarks,
            "createdAt": row.created_at.isoformat(),
        }


def create_store_from_env(url: str | None) -> LedgerStore:
    return LedgerStore(url or "sqlite:///ledger_data.sqlite3")
