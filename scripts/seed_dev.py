"""Seed the development database with a sample roster and prize plan."""

from __future__ import annotations

import logging
import random

from lottery.db.engine import get_sessionmaker, make_engine
from lottery.draw import PersonPool, PrizeRegistry
from lottery.models import Base
from lottery.settings import Settings
from lottery.workflows import run_draw

DEPARTMENTS = ["Engineering", "Sales", "Finance", "Operations", "Design"]


def main() -> None:
    """Recreate the schema, add people and prizes, and run one draw."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    engine = make_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)
    rng = random.Random(2026)

    with Session.begin() as session:
        pool = PersonPool(session)
        people = pool.add_people(
            {
                "name": f"Guest {idx:03d}",
                "uid": f"E{idx:04d}",
                "department": rng.choice(DEPARTMENTS),
            }
            for idx in range(1, 121)
        )

        registry = PrizeRegistry(session)
        grand = registry.add_prize(name="Grand Prize", count=1, frequency=1)
        first = registry.add_prize(name="First Prize", count=3, frequency=3)
        second = registry.add_prize(
            name="Second Prize", count=10, frequency=5, batch_counts=[5, 5]
        )
        registry.add_prize(name="Thank-you Gift", count=30, frequency=10, is_all=True)

        registry.set_fixed_winners(
            first.id,
            [{"uuid": people[0].uuid, "name": people[0].name, "position": 2}],
        )

        for prize in (grand, first, second):
            result = run_draw(session, prize.id, rng=rng)
            names = ", ".join(f"{w.position}:{w.person.name}" for w in result.winners)
            print(f"{prize.name}: {names}")


if __name__ == "__main__":
    main()
