"""SQLAlchemy-backed StateStore.

Tables mirror the logical layout: a singleton ledger_meta row (owner and id
counter), the admin set, contributions keyed by id and contributors keyed by
identity. Every commit runs in one database transaction and touches only
the rows that changed since the previous load or commit.

Scores and sequence values are stored as decimal strings so the full
unsigned 128-bit range round-trips on any backend.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Integer,
    String,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.types import TypeDecorator

import bittensor as bt

from collabledger.ledger.errors import StateIntegrityError
from collabledger.ledger.models import (
    AdminSet,
    ContributionRecord,
    ContributorProfile,
    LedgerState,
    MAX_DETAILS_LENGTH,
    Tier,
)


class UInt128(TypeDecorator):
    """Unsigned 128-bit integer persisted as its decimal string."""

    impl = String(39)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(int(value))

    def process_result_value(self, value, dialect):
        return None if value is None else int(value)


class Base(DeclarativeBase):
    pass


class LedgerMeta(Base):
    """Singleton table holding the scalar state.

    Always contains exactly one row (id=1) once anything was committed.
    """

    __tablename__ = "ledger_meta"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=1,
        comment="Singleton row (always id=1)",
    )
    schema_version: Mapped[int] = mapped_column(Integer, nullable=False)
    owner: Mapped[str | None] = mapped_column(String, comment="Identity set by initialize()")
    last_contribution_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Id counter; next contribution gets this + 1",
    )


class AdminRow(Base):
    __tablename__ = "ledger_admins"

    identity: Mapped[str] = mapped_column(String, primary_key=True)


class ContributionRow(Base):
    __tablename__ = "ledger_contributions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    contributor: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_at: Mapped[int] = mapped_column(UInt128, nullable=False)
    details: Mapped[str] = mapped_column(String(MAX_DETAILS_LENGTH), nullable=False)
    score: Mapped[int] = mapped_column(UInt128, nullable=False, default=0)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ContributorRow(Base):
    __tablename__ = "ledger_contributors"

    identity: Mapped[str] = mapped_column(String, primary_key=True)
    total_score: Mapped[int] = mapped_column(UInt128, nullable=False, default=0)
    contribution_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tier: Mapped[int] = mapped_column(Integer, nullable=False, default=int(Tier.BRONZE))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SqlStore:
    """StateStore over any SQLAlchemy engine URL.

    The last loaded or committed snapshot is kept so a commit only writes
    the rows that differ from it: the meta row, new admins, new or verified
    contributions and touched profiles.
    """

    def __init__(self, url: str = "sqlite:///collabledger.db", engine: Engine | None = None):
        self.engine = engine if engine is not None else create_engine(url)
        Base.metadata.create_all(self.engine)
        self._committed: LedgerState | None = None

    def load(self) -> LedgerState | None:
        with Session(self.engine) as session:
            meta = session.get(LedgerMeta, 1)
            if meta is None:
                return None

            try:
                admins = set(session.scalars(select(AdminRow.identity)))
                contributions = {
                    row.id: ContributionRecord(
                        id=row.id,
                        contributor=row.contributor,
                        created_at=row.created_at,
                        details=row.details,
                        score=row.score,
                        verified=row.verified,
                    )
                    for row in session.scalars(select(ContributionRow))
                }
                contributors = {
                    row.identity: ContributorProfile(
                        total_score=row.total_score,
                        contribution_count=row.contribution_count,
                        tier=Tier(row.tier),
                        is_active=row.is_active,
                    )
                    for row in session.scalars(select(ContributorRow))
                }

                state = LedgerState(
                    schema_version=meta.schema_version,
                    admin_set=AdminSet(owner=meta.owner, admins=admins),
                    contributions=contributions,
                    contributors=contributors,
                    last_contribution_id=meta.last_contribution_id,
                )
            except ValueError as e:
                raise StateIntegrityError(f"state unreadable: {e}") from e

        self._committed = state
        bt.logging.info({"sql_store": "state_loaded", "last_contribution_id": state.last_contribution_id})
        return state

    def commit(self, state: LedgerState) -> None:
        previous = self._committed
        with Session(self.engine) as session, session.begin():
            meta = LedgerMeta(
                id=1,
                schema_version=state.schema_version,
                owner=state.admin_set.owner,
                last_contribution_id=state.last_contribution_id,
            )
            if previous is None:
                session.merge(meta)
            elif (
                previous.schema_version != state.schema_version
                or previous.admin_set.owner != state.admin_set.owner
                or previous.last_contribution_id != state.last_contribution_id
            ):
                session.execute(
                    update(LedgerMeta)
                    .where(LedgerMeta.id == 1)
                    .values(
                        schema_version=meta.schema_version,
                        owner=meta.owner,
                        last_contribution_id=meta.last_contribution_id,
                    )
                )

            if previous is None:
                # Unknown database contents: replace the admin table wholesale.
                session.execute(delete(AdminRow))
                session.add_all(AdminRow(identity=a) for a in sorted(state.admin_set.admins))
            else:
                added = state.admin_set.admins - previous.admin_set.admins
                session.add_all(AdminRow(identity=a) for a in sorted(added))

            for record in state.contributions.values():
                before = previous.contributions.get(record.id) if previous is not None else None
                if before == record:
                    continue
                row = ContributionRow(
                    id=record.id,
                    contributor=record.contributor,
                    created_at=record.created_at,
                    details=record.details,
                    score=record.score,
                    verified=record.verified,
                )
                if previous is not None and before is None:
                    session.add(row)
                else:
                    session.merge(row)

            for identity, profile in state.contributors.items():
                before = previous.contributors.get(identity) if previous is not None else None
                if before == profile:
                    continue
                row = ContributorRow(
                    identity=identity,
                    total_score=profile.total_score,
                    contribution_count=profile.contribution_count,
                    tier=int(profile.tier),
                    is_active=profile.is_active,
                )
                if previous is not None and before is None:
                    session.add(row)
                else:
                    session.merge(row)

        self._committed = state


__all__ = ["Base", "SqlStore"]
