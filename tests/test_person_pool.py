import unittest
from datetime import datetime, timezone

from lottery.db.engine import get_sessionmaker, make_engine
from lottery.draw import PersonPool, PrizeRegistry
from lottery.errors import NotFoundError
from lottery.models import Base, Person


class PersonPoolTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()

    def _seed(self, session, count: int = 4) -> list[Person]:
        return PersonPool(session).add_people(
            {"name": f"Person {idx}", "uid": f"E{idx:03d}"} for idx in range(count)
        )

    def test_add_people_assigns_uuids_and_rejects_duplicates(self) -> None:
        with self.Session() as session:
            pool = PersonPool(session)
            people = self._seed(session, 3)
            self.assertEqual(len({p.uuid for p in people}), 3)
            self.assertEqual([p.name for p in pool.all()], ["Person 0", "Person 1", "Person 2"])

            with self.assertRaises(ValueError):
                pool.add_people([{"name": "Clone", "uuid": people[0].uuid}])

    def test_eligible_always_excludes_winners_of_same_prize(self) -> None:
        with self.Session() as session:
            pool = PersonPool(session)
            prize = PrizeRegistry(session).add_prize(name="Gift", count=5)
            people = self._seed(session)
            pool.record_win(people[0].id, prize.id)

            eligible = pool.eligible(prize.id, exclude_already_won_this_prize=False)
            self.assertNotIn(people[0], eligible)
            self.assertEqual(len(eligible), 3)

    def test_eligible_exclude_any_win(self) -> None:
        with self.Session() as session:
            pool = PersonPool(session)
            registry = PrizeRegistry(session)
            first = registry.add_prize(name="First", count=1)
            second = registry.add_prize(name="Second", count=1)
            people = self._seed(session)
            pool.record_win(people[1].id, first.id)

            self.assertIn(people[1], pool.eligible(second.id, exclude_any_win=False))
            self.assertNotIn(people[1], pool.eligible(second.id, exclude_any_win=True))

    def test_record_win_appends_history(self) -> None:
        won_at = datetime(2026, 10, 18, 19, 30, tzinfo=timezone.utc)
        with self.Session() as session:
            pool = PersonPool(session)
            prize = PrizeRegistry(session).add_prize(name="Grand Prize", count=1)
            person = self._seed(session, 1)[0]

            pool.record_win(person.id, prize.id, won_at)
            session.commit()

            self.assertTrue(person.is_win)
            self.assertEqual(person.prize_ids, [str(prize.id)])
            self.assertEqual(person.prize_names, ["Grand Prize"])
            self.assertEqual(person.prize_times, ["2026-10-18T19:30:00+00:00"])
            self.assertEqual(pool.winners(), [person])
            self.assertNotIn(person, pool.non_winners())

    def test_unknown_ids_raise_not_found(self) -> None:
        with self.Session() as session:
            pool = PersonPool(session)
            prize = PrizeRegistry(session).add_prize(name="Gift", count=1)
            person = self._seed(session, 1)[0]

            with self.assertRaises(NotFoundError):
                pool.get(9999)
            with self.assertRaises(NotFoundError):
                pool.record_win(9999, prize.id)
            with self.assertRaises(NotFoundError):
                pool.record_win(person.id, 9999)
            with self.assertRaises(NotFoundError):
                pool.remove(9999)

    def test_reset_wins_is_idempotent(self) -> None:
        with self.Session() as session:
            pool = PersonPool(session)
            prize = PrizeRegistry(session).add_prize(name="Gift", count=5)
            people = self._seed(session)
            pool.record_win(people[0].id, prize.id)
            pool.record_win(people[2].id, prize.id)

            self.assertEqual(pool.reset_wins(), 2)
            first = [p.to_json() for p in pool.all()]
            self.assertEqual(pool.reset_wins(), 0)
            second = [p.to_json() for p in pool.all()]

            self.assertEqual(first, second)
            self.assertEqual(len(pool.all()), 4)
            self.assertTrue(all(not p.is_win and p.prize_ids == [] for p in pool.all()))

    def test_remove_and_clear(self) -> None:
        with self.Session() as session:
            pool = PersonPool(session)
            people = self._seed(session, 3)

            pool.remove(people[0].id)
            self.assertEqual(len(pool.all()), 2)
            self.assertIsNone(pool.get_by_uuid(people[0].uuid))

            self.assertEqual(pool.clear(), 2)
            self.assertEqual(pool.all(), [])


if __name__ == "__main__":
    unittest.main()
