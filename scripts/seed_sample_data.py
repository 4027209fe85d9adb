"""Seed sample members, partners, promotions and redemptions for local testing.

Idempotent: skips seeding if partners already exist.
Run: python scripts/seed_sample_data.py
"""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Ensure project root is on sys.path so 'config' and 'db' resolve
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.orm import Session  # noqa: E402

from db.connection import get_session  # noqa: E402
from db.enums import MemberType, UsageLimit  # noqa: E402
from db.models import Members, Partners, Promotions, RedemptionEvents  # noqa: E402
from unipass.services._helpers import new_id  # noqa: E402

SCHOOL_ID = "school-centro"


def _ts(days_ago: int = 0) -> str:
    return (datetime.now(UTC) - timedelta(days=days_ago)).isoformat()


def seed(session: Session) -> dict[str, int]:
    # Idempotent: skip if data exists
    if session.query(Partners).first():
        print("Sample data already seeded, skipping.")
        return {}

    print("Seeding sample data...")
    valid_until: str = (datetime.now(UTC) + timedelta(days=365)).date().isoformat()

    # --- Members ---
    member_data = [
        ("m-ana", "Ana Souza", "123.456.789-09", MemberType.STUDENT, None),
        ("m-bruno", "Bruno Lima", "987.654.321-00", MemberType.STUDENT, None),
        ("m-carla", "Carla Souza", "111.444.777-35", MemberType.STUDENT, "m-ana"),
        ("m-diego", "Diego Alves", "529.982.247-25", MemberType.STAFF, None),
    ]
    for mid, name, cpf, mtype, parent in member_data:
        session.add(
            Members(
                id=mid,
                school_id=SCHOOL_ID,
                full_name=name,
                cpf=cpf,
                member_type=mtype.value,
                registration_number=f"RA-{mid[2:].upper()}",
                course="Engenharia" if mtype == MemberType.STUDENT else None,
                valid_until=valid_until,
                is_active=True,
                parent_id=parent,
                created_at=_ts(60),
                updated_at=_ts(60),
            )
        )
    session.flush()

    # --- Partners & promotions ---
    partner_data = [
        ("p-cafe", "Café Central", "Alimentação", "10% em todo o cardápio"),
        ("p-livraria", "Livraria Saber", "Educação", "15% em livros"),
        ("p-academia", "Academia Forma", "Saúde", None),
    ]
    promo_data = {
        "p-cafe": [
            ("promo-cafe-gratis", "Café expresso grátis", UsageLimit.MONTHLY),
            ("promo-boas-vindas", "Combo boas-vindas", UsageLimit.ONCE),
        ],
        "p-livraria": [("promo-marcador", "Marcador de brinde", UsageLimit.UNLIMITED)],
        "p-academia": [("promo-aula", "Aula experimental", UsageLimit.ONCE)],
    }
    promotions = 0
    for pid, name, category, discount in partner_data:
        session.add(
            Partners(
                id=pid,
                school_id=SCHOOL_ID,
                name=name,
                category=category,
                discount=discount,
                is_active=True,
                created_at=_ts(30),
                updated_at=_ts(30),
            )
        )
        for i, (promo_id, title, limit) in enumerate(promo_data[pid]):
            session.add(
                Promotions(
                    partner_id=pid,
                    id=promo_id,
                    title=title,
                    usage_limit=limit.value,
                    is_active=True,
                    created_at=_ts(30 - i),
                    updated_at=_ts(30 - i),
                )
            )
            promotions += 1
    session.flush()

    # --- Redemptions ---
    events = [
        ("m-ana", "p-cafe", "STANDARD_BENEFIT", "10% em todo o cardápio", 20, None),
        ("m-ana", "p-cafe", "promo-boas-vindas", "Combo boas-vindas", 15, "m-ana|p-cafe|promo-boas-vindas"),
        ("m-bruno", "p-livraria", "promo-marcador", "Marcador de brinde", 3, None),
    ]
    for member_id, partner_id, offer_id, title, days_ago, key in events:
        session.add(
            RedemptionEvents(
                id=new_id(),
                created_at=_ts(days_ago),
                partner_id=partner_id,
                offer_id=offer_id,
                offer_title=title,
                member_id=member_id,
                actor_id="seed",
                actor_name="Seed",
                actor_role="STORE",
                limit_key=key,
            )
        )
    session.flush()

    counts: dict[str, int] = {
        "members": len(member_data),
        "partners": len(partner_data),
        "promotions": promotions,
        "redemptions": len(events),
    }
    for name, n in counts.items():
        print(f"  {n} {name}")
    print("Done.")
    return counts


if __name__ == "__main__":
    with get_session() as session:
        seed(session)
