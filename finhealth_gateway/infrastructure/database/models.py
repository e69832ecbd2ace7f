"""SQLAlchemy ORM models for the financial record and lookup tables"""

from sqlalchemy import BigInteger, Boolean, Column, Date, Float, Integer, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# BIGSERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid alias) on SQLite
Id = BigInteger().with_variant(Integer(), "sqlite")


class RecordColumns:
    """Columns shared by every money movement table"""

    id = Column(Id, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False, index=True)
    planned = Column(Boolean, nullable=False, default=False)
    category = Column(BigInteger, nullable=True)
    connected_account = Column(Text, nullable=False, default="")
    currency_code = Column(Text, nullable=False, default="")


class IncomeRow(RecordColumns, Base):
    __tablename__ = "income"

    sender = Column(Text, nullable=False, default="")


class ExpenseRow(RecordColumns, Base):
    __tablename__ = "expense"

    sent_to = Column(Text, nullable=False, default="")


class WealthFundRow(RecordColumns, Base):
    """Contribution (positive) or withdrawal (negative)"""

    __tablename__ = "wealth_fund"

    is_liquid = Column(Boolean, nullable=False, default=True)


class LoanRow(RecordColumns, Base):
    """Servicing payment with the outstanding balance left after it"""

    __tablename__ = "loans"

    lender = Column(Text, nullable=False)
    remaining = Column(Float, nullable=False, default=0.0)


class InvestmentRow(RecordColumns, Base):
    __tablename__ = "investments"

    asset = Column(Text, nullable=False, default="")


class SubscriptionRow(Base):
    __tablename__ = "subscriptions"

    id = Column(Id, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)


class ConnectedAccountRow(Base):
    __tablename__ = "connected_accounts"

    id = Column(Id, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    bank_id = Column(Text, nullable=False)
    account_number = Column(Text, nullable=False)
    account_type = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    currency = Column(Text, nullable=False)
    state = Column(Text, nullable=False)


class CategoryColumns:
    id = Column(Id, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    icon = Column(Text, nullable=False, default="")
    is_fixed = Column(Boolean, nullable=False, default=False)
    user_id = Column(Text, nullable=False, index=True)


class IncomeCategoryRow(CategoryColumns, Base):
    __tablename__ = "income_categories"


class ExpenseCategoryRow(CategoryColumns, Base):
    __tablename__ = "expense_categories"


class InvestmentCategoryRow(CategoryColumns, Base):
    __tablename__ = "investment_categories"
