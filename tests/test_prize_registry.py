import unittest

from lottery.db.engine import get_sessionmaker, make_engine
from lottery.draw import BatchScheduler, PrizeRegistry
from lottery.errors import NotFoundError, OverdrawError
from lottery.models import Base, FixedWinnerEntry


class PrizeRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()

    def assertCountersConsistent(self, prize) -> None:
        self.assertLessEqual(prize.used_count, prize.count)
        if prize.batches_enabled:
            self.assertEqual(sum(b.used_count for b in prize.batches), prize.used_count)
            for batch in prize.batches:
                self.assertLessEqual(batch.used_count, batch.count)

    def test_remaining_count_without_batches(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="Gift", count=5, frequency=2)

            self.assertEqual(registry.remaining_count(prize.id), 5)
            self.assertIsNone(registry.active_batch(prize.id))
            registry.commit(prize.id, 2)
            self.assertEqual(registry.remaining_count(prize.id), 3)
            self.assertFalse(prize.is_used)

            registry.commit(prize.id, 3)
            self.assertEqual(registry.remaining_count(prize.id), 0)
            self.assertTrue(prize.is_used)
            self.assertCountersConsistent(prize)

    def test_batches_are_a_sequential_gate(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="Second", count=10, frequency=5, batch_counts=[3, 7])

            self.assertEqual(registry.active_batch(prize.id).batch_key, "batch-1")
            self.assertEqual(registry.remaining_count(prize.id), 3)
            registry.commit(prize.id, 3)
            self.assertEqual(registry.active_batch(prize.id).batch_key, "batch-2")
            self.assertEqual(registry.remaining_count(prize.id), 7)
            self.assertCountersConsistent(prize)

    def test_spent_batches_exhaust_prize_with_overall_slack(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="Partial", count=6, batch_counts=[2, 2])

            registry.commit(prize.id, 2)
            registry.commit(prize.id, 2)
            self.assertIsNone(registry.active_batch(prize.id))
            self.assertEqual(registry.remaining_count(prize.id), 0)
            self.assertEqual(prize.used_count, 4)
            self.assertTrue(prize.is_used)
            self.assertEqual(BatchScheduler(registry).allowed(prize.id, 3), 0)

    def test_commit_beyond_remaining_raises_overdraw(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="Second", count=10, batch_counts=[3, 7])

            with self.assertRaises(OverdrawError):
                registry.commit(prize.id, 4)
            self.assertEqual(prize.used_count, 0)
            self.assertEqual([b.used_count for b in prize.batches], [0, 0])

    def test_reset_counts_is_idempotent(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="Second", count=4, batch_counts=[2, 2])
            registry.commit(prize.id, 2)
            registry.commit(prize.id, 2)

            registry.reset_counts(prize.id)
            once = prize.to_json()
            registry.reset_counts(prize.id)
            twice = prize.to_json()

            self.assertEqual(once, twice)
            self.assertEqual(prize.used_count, 0)
            self.assertFalse(prize.is_used)
            self.assertEqual(registry.active_batch(prize.id).batch_key, "batch-1")

    def test_set_batches_validation(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="Gift", count=5)

            with self.assertRaises(ValueError):
                registry.set_batches(prize.id, [3, 3])
            registry.set_batches(prize.id, [2, 3])
            registry.set_batches(prize.id, [1, 4])
            self.assertEqual([b.count for b in prize.batches], [1, 4])

            registry.commit(prize.id, 1)
            with self.assertRaises(ValueError):
                registry.set_batches(prize.id, [5])

    def test_set_fixed_winners_validates_positions(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            prize = registry.add_prize(name="First", count=3, frequency=3)

            with self.assertRaises(ValueError):
                registry.set_fixed_winners(
                    prize.id, [{"uuid": "u-1", "name": "Alice", "position": 4}]
                )

            registry.set_fixed_winners(
                prize.id,
                [
                    {"uuid": "u-1", "name": "Alice", "position": 2},
                    FixedWinnerEntry(person_uuid="u-2", person_name="Bob", position=2),
                ],
            )
            self.assertTrue(prize.fixed_winners_enabled)
            self.assertEqual([e.seq for e in prize.fixed_winners], [0, 1])
            self.assertEqual([e.position for e in prize.fixed_winners], [2, 2])

            registry.set_fixed_winners(prize.id, [{"uuid": "u-3", "name": "Cid"}], enabled=False)
            self.assertFalse(prize.fixed_winners_enabled)
            self.assertEqual([e.person_name for e in prize.fixed_winners], ["Cid"])

    def test_prizes_listed_in_sort_order(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            third = registry.add_prize(name="Third", count=1, sort=3)
            first = registry.add_prize(name="First", count=1, sort=1)
            hidden = registry.add_prize(name="Hidden", count=1, sort=2, is_show=False)

            self.assertEqual(registry.list_prizes(), [first, hidden, third])
            self.assertEqual(registry.list_prizes(visible_only=True), [first, third])

    def test_add_temporary_prize(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            registry.add_prize(name="Grand", count=1, sort=5)
            temp = registry.add_temporary_prize(name="Lucky Bag", count=25)

            self.assertTrue(temp.is_temporary)
            self.assertEqual(temp.frequency, 10)
            self.assertEqual(temp.sort, 6)
            self.assertEqual(registry.list_prizes()[-1], temp)

            small = registry.add_temporary_prize(name="Mug", count=3)
            self.assertEqual(small.frequency, 3)

    def test_frequency_above_single_draw_limit_is_rejected(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            with self.assertRaises(ValueError):
                registry.add_prize(name="Crowd", count=20, frequency=15)
            self.assertEqual(registry.list_prizes(), [])

    def test_unknown_prize_raises_not_found(self) -> None:
        with self.Session() as session:
            registry = PrizeRegistry(session)
            with self.assertRaises(NotFoundError):
                registry.remaining_count(42)
            with self.assertRaises(NotFoundError):
                registry.commit(42, 1)
            with self.assertRaises(NotFoundError):
                registry.reset_counts(42)


if __name__ == "__main__":
    unittest.main()
