"""SQLAlchemy models for the propfin record store."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Transaction(Base):
    """Transaction model.

    Amounts are stored already sign-normalized: income >= 0, expense <= 0.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    source_id = Column(String, unique=True, nullable=False)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String, nullable=False)
    raw_category = Column(String, nullable=False, default="")
    description = Column(String, nullable=True)
    vendor = Column(String, nullable=True)
    property_id = Column(String, nullable=True, index=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Property(Base):
    """Property model."""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True)
    property_id = Column(String, unique=True, nullable=False)
    property_name = Column(String, nullable=False)
    home_category = Column(String, nullable=False, default="")
    lifetime_total = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    months = relationship(
        "PropertyMonth",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PropertyMonth.month",
    )


class PropertyMonth(Base):
    """One month of figures reported for a property."""

    __tablename__ = "property_months"

    id = Column(Integer, primary_key=True)
    property_pk = Column(Integer, ForeignKey("properties.id"), nullable=False)
    month = Column(String(7), nullable=False)
    net_income = Column(Numeric(12, 2), nullable=False)
    gross_revenue = Column(Numeric(12, 2), nullable=True)
    total_expenses = Column(Numeric(12, 2), nullable=True)

    # One row per property and month
    __table_args__ = (UniqueConstraint("property_pk", "month", name="uq_property_month"),)

    # Relationships
    property = relationship("Property", back_populates="months")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
