"""
Strength History Persistence - SQLAlchemy.

============================================================
CURRENCY STRENGTH TABLE
============================================================

One row per aggregation run and currency. The latest row per
currency is the trend baseline for the next run.

Works with any SQLAlchemy URL; an in-memory SQLite database is
shared across sessions so it can back tests.

Persistence failures NEVER propagate into scoring: reads fall back
to "no previous value" and writes are logged and skipped.
============================================================
"""

import logging
from contextlib import contextmanager
from datetime import timezone
from typing import Generator, Optional

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from normalization.models import Sentiment

from .history import StrengthHistory
from .strength_score import CurrencyStrengthResult, Trend
from .tiers import IndicatorTier


logger = logging.getLogger(__name__)


# =============================================================
# DECLARATIVE BASE
# =============================================================

Base = declarative_base()


class CurrencyStrengthRecord(Base):
    """
    Stored strength result.

    Source: scoring_engine.strength_score
    Update Frequency: Per pipeline cycle
    """
    __tablename__ = "currency_strength"

    id = Column(Integer, primary_key=True, autoincrement=True)
    currency = Column(String(3), nullable=False)
    strength_score = Column(Float, nullable=False)
    sentiment = Column(String(16), nullable=False)
    confidence_level = Column(Integer, nullable=False)
    trend = Column(String(16), nullable=False)

    # Tier breakdown
    tier_1_score = Column(Float, nullable=False, default=0.0)
    tier_2_score = Column(Float, nullable=False, default=0.0)
    tier_3_score = Column(Float, nullable=False, default=0.0)
    tier_4_score = Column(Float, nullable=False, default=0.0)
    tier_5_score = Column(Float, nullable=False, default=0.0)

    indicators_count = Column(Integer, nullable=False, default=0)
    calculation_date = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_currency_strength_currency_date", "currency", "calculation_date"),
    )

    @classmethod
    def from_result(cls, result: CurrencyStrengthResult) -> "CurrencyStrengthRecord":
        tiers = {tier.key: result.tier_breakdown.get(tier.key, 0.0) for tier in IndicatorTier}
        return cls(
            currency=result.currency,
            strength_score=result.strength_score,
            sentiment=result.sentiment.value,
            confidence_level=result.confidence_level,
            trend=result.trend.value,
            indicators_count=result.indicators_count,
            calculation_date=result.last_update,
            **tiers,
        )

    def to_result(self) -> CurrencyStrengthResult:
        calculated = self.calculation_date
        if calculated.tzinfo is None:
            # SQLite drops the offset
            calculated = calculated.replace(tzinfo=timezone.utc)
        return CurrencyStrengthResult(
            currency=self.currency,
            strength_score=self.strength_score,
            sentiment=Sentiment(self.sentiment),
            confidence_level=self.confidence_level,
            trend=Trend(self.trend),
            last_update=calculated,
            tier_breakdown={tier.key: getattr(self, tier.key) for tier in IndicatorTier},
            indicators_count=self.indicators_count,
        )


# =============================================================
# ENGINE
# =============================================================


def create_history_engine(database_url: str, echo: bool = False):
    """Create an engine; in-memory SQLite uses a single shared connection."""
    if database_url.startswith("sqlite") and (":memory:" in database_url or database_url == "sqlite://"):
        return create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
            future=True,
        )
    return create_engine(database_url, echo=echo, future=True, pool_pre_ping=True)


class SqlStrengthHistory(StrengthHistory):
    """
    Strength history stored in the `currency_strength` table.

    Usage:
        history = SqlStrengthHistory("sqlite:///strength.db")
        aggregator = TieredStrengthAggregator(history=history)
    """

    def __init__(self, database_url: str, create_tables: bool = True, echo: bool = False) -> None:
        self.database_url = database_url
        self._engine = create_history_engine(database_url, echo=echo)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        if create_tables:
            self.create_tables()

    def create_tables(self) -> None:
        try:
            Base.metadata.create_all(bind=self._engine)
            logger.info(f"Strength history ready at {self.database_url.split('@')[-1]}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to create strength history table: {e}")

    @contextmanager
    def _session_scope(self) -> Generator[Session, None, None]:
        """Commit on success, roll back on any exception."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_previous_strength(self, currency: str) -> Optional[float]:
        try:
            with self._session_scope() as session:
                row = session.execute(
                    select(CurrencyStrengthRecord.strength_score)
                    .where(CurrencyStrengthRecord.currency == currency)
                    .order_by(
                        CurrencyStrengthRecord.calculation_date.desc(),
                        CurrencyStrengthRecord.id.desc(),
                    )
                    .limit(1)
                ).first()
                return row[0] if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read previous strength for {currency}: {e}")
            return None

    def record(self, result: CurrencyStrengthResult) -> None:
        try:
            with self._session_scope() as session:
                session.add(CurrencyStrengthRecord.from_result(result))
            logger.debug(f"Stored strength {result.strength_score:.2f} for {result.currency}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to store strength for {result.currency}: {e}")

    def get_history(self, currency: str, limit: int = 20) -> list[CurrencyStrengthResult]:
        try:
            with self._session_scope() as session:
                rows = session.execute(
                    select(CurrencyStrengthRecord)
                    .where(CurrencyStrengthRecord.currency == currency)
                    .order_by(
                        CurrencyStrengthRecord.calculation_date.desc(),
                        CurrencyStrengthRecord.id.desc(),
                    )
                    .limit(limit)
                ).scalars().all()
                return [row.to_result() for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to read strength history for {currency}: {e}")
            return []

    def close(self) -> None:
        self._engine.dispose()
