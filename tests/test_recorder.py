import random
import unittest
from unittest.mock import patch

from lottery.db.engine import get_sessionmaker, make_engine
from lottery.draw import DrawEngine, PersonPool, PrizeRegistry, ResultRecorder
from lottery.errors import CommitError, OverdrawError
from lottery.models import Base
from lottery.workflows import export_snapshot


class ResultRecorderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()

    def _prepare(self, session):
        PersonPool(session).add_people({"name": f"Guest {idx}"} for idx in range(6))
        prize = PrizeRegistry(session).add_prize(name="Gift", count=6, frequency=3)
        session.commit()
        engine = DrawEngine(session, exclude_any_win=True, rng=random.Random(5))
        return prize, engine

    def test_commit_records_wins_and_counters(self) -> None:
        with self.Session() as session:
            prize, engine = self._prepare(session)
            result = engine.draw(prize.id)

            updated = ResultRecorder(session).commit(result)
            session.commit()

            self.assertIs(updated, prize)
            self.assertEqual(prize.used_count, 3)
            for person in result.people:
                self.assertTrue(person.is_win)
                self.assertEqual(person.prize_ids, [str(prize.id)])
                self.assertEqual(person.prize_names, ["Gift"])
            self.assertEqual(len(PersonPool(session).winners()), 3)

    def test_failure_during_commit_rolls_back_everything(self) -> None:
        with self.Session() as session:
            prize, engine = self._prepare(session)
            result = engine.draw(prize.id)
            before = export_snapshot(session)

            with patch.object(
                PrizeRegistry, "commit", side_effect=OverdrawError("counter drift")
            ):
                with self.assertRaises(CommitError) as ctx:
                    ResultRecorder(session).commit(result)

            self.assertEqual(ctx.exception.prize_id, prize.id)
            self.assertIsInstance(ctx.exception.__cause__, OverdrawError)
            self.assertEqual(export_snapshot(session), before)
            self.assertEqual(PersonPool(session).winners(), [])

    def test_recording_same_result_twice_is_rejected(self) -> None:
        with self.Session() as session:
            prize, engine = self._prepare(session)
            result = engine.draw(prize.id)
            recorder = ResultRecorder(session)
            recorder.commit(result)
            session.commit()
            after_first = export_snapshot(session)

            with self.assertRaises(CommitError):
                recorder.commit(result)
            self.assertEqual(export_snapshot(session), after_first)
            self.assertEqual(prize.used_count, 3)


if __name__ == "__main__":
    unittest.main()
