"""SQLAlchemy ORM models.

Keep in sync with migrations/*.sql.
"""

from uuid import uuid4

from sqlalchemy import ForeignKey, Index, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


def generate_uuid() -> str:
    return str(uuid4())


class Members(Base):
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(primary_key=True)
    school_id: Mapped[str] = mapped_column(nullable=False)
    full_name: Mapped[str] = mapped_column(nullable=False)
    cpf: Mapped[str] = mapped_column(nullable=False, index=True)
    member_type: Mapped[str] = mapped_column(nullable=False, default="ALUNO")
    registration_number: Mapped[str | None] = mapped_column()
    course: Mapped[str | None] = mapped_column()
    valid_until: Mapped[str] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    parent_id: Mapped[str | None] = mapped_column(ForeignKey("members.id"))
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)


class Partners(Base):
    __tablename__ = "partners"

    id: Mapped[str] = mapped_column(primary_key=True)
    school_id: Mapped[str | None] = mapped_column()
    name: Mapped[str] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(nullable=False, default="")
    discount: Mapped[str | None] = mapped_column()
    description: Mapped[str | None] = mapped_column()
    address: Mapped[str | None] = mapped_column()
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)
    promotions = relationship(
        "Promotions",
        back_populates="partner",
        cascade="all, delete-orphan",
        order_by="Promotions.created_at",
    )


class Promotions(Base):
    __tablename__ = "promotions"

    partner_id: Mapped[str] = mapped_column(ForeignKey("partners.id"), primary_key=True)
    id: Mapped[str] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(nullable=False)
    usage_limit: Mapped[str] = mapped_column(nullable=False, default="UNLIMITED")
    description: Mapped[str | None] = mapped_column()
    valid_until: Mapped[str | None] = mapped_column()
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)
    partner = relationship("Partners", back_populates="promotions")


class RedemptionEvents(Base):
    """Append-only. ``seq`` breaks ties between equal timestamps."""

    __tablename__ = "redemption_events"

    seq: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(nullable=False, default=generate_uuid)
    created_at: Mapped[str] = mapped_column(nullable=False)
    partner_id: Mapped[str] = mapped_column(nullable=False)
    offer_id: Mapped[str] = mapped_column(nullable=False)
    offer_title: Mapped[str | None] = mapped_column()
    member_id: Mapped[str] = mapped_column(nullable=False)
    actor_id: Mapped[str] = mapped_column(nullable=False)
    actor_name: Mapped[str] = mapped_column(nullable=False, default="")
    actor_role: Mapped[str] = mapped_column(nullable=False, default="STORE")
    # NULL for UNLIMITED offers; unique otherwise so capped redemptions are at-most-once
    limit_key: Mapped[str | None] = mapped_column()

    __table_args__ = (
        UniqueConstraint("id"),
        UniqueConstraint("limit_key"),
        Index("ix_redemption_events_member_partner", "member_id", "partner_id", "offer_id"),
    )


class ValidationLogs(Base):
    __tablename__ = "validation_logs"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    created_at: Mapped[str] = mapped_column(nullable=False)
    partner_id: Mapped[str] = mapped_column(nullable=False, index=True)
    member_id: Mapped[str | None] = mapped_column()
    action: Mapped[str] = mapped_column(nullable=False)
    method: Mapped[str] = mapped_column(nullable=False)
    actor_id: Mapped[str] = mapped_column(nullable=False)
    actor_name: Mapped[str] = mapped_column(nullable=False, default="")
    actor_role: Mapped[str] = mapped_column(nullable=False, default="STORE")
    details: Mapped[str] = mapped_column(nullable=False, default="")
