import unittest

from blockfall.game import (
    FixedShape,
    GameConfig,
    GameEngine,
    GameGrid,
    Piece,
    Scheduler,
    TimingCoordinator,
)

W, H = 10, 22
MONO = FixedShape.of([[1]], type_id=1)


def mono(x, y):
    return Piece(MONO, x, y)


class TestScheduler(unittest.TestCase):
    def test_given_timers_when_advancing_then_fired_in_due_order(self):
        sched = Scheduler()
        fired = []
        sched.call_later(100, lambda: fired.append("a"))
        sched.call_later(50, lambda: fired.append("b"))
        sched.advance(99)
        self.assertEqual(fired, ["b"])
        sched.advance(1)
        self.assertEqual(fired, ["b", "a"])
        self.assertEqual(sched.now_ms, 100)

    def test_given_cancelled_timer_when_due_then_not_fired(self):
        sched = Scheduler()
        fired = []
        timer = sched.call_later(10, lambda: fired.append(1))
        timer.cancel()
        timer.cancel()
        sched.advance(20)
        self.assertEqual(fired, [])
        self.assertFalse(timer.active)
        self.assertEqual(sched.pending_count(), 0)

    def test_given_callback_rearming_when_advancing_far_then_each_cycle_runs_on_schedule(self):
        sched = Scheduler(now_ms=1000)
        times = []

        def tick():
            times.append(sched.now_ms)
            if len(times) < 3:
                sched.call_later(100, tick)

        sched.call_later(100, tick)
        sched.advance_to(5000)
        self.assertEqual(times, [1100, 1200, 1300])
        self.assertEqual(sched.now_ms, 5000)

    def test_given_pending_timers_when_cancelling_all_then_none_fire(self):
        sched = Scheduler()
        fired = []
        sched.call_later(1, lambda: fired.append(1))
        sched.call_later(2, lambda: fired.append(2))
        self.assertEqual(sched.pending_count(), 2)
        sched.cancel_all()
        sched.advance(10)
        self.assertEqual(fired, [])


class TestTimingCoordinator(unittest.TestCase):
    def setUp(self):
        self.engine = GameEngine(GameConfig(random_seed=3))
        self.scheduler = Scheduler()
        self.timing = TimingCoordinator(self.engine, self.scheduler)

    def _load(self, **changes):
        self.engine.load(self.engine.state.evolve(**changes))

    def test_given_started_when_interval_elapses_then_piece_falls_one_row(self):
        y0 = self.engine.state.current_piece.y
        self.timing.start()
        self.scheduler.advance(499)
        self.assertEqual(self.engine.state.current_piece.y, y0)
        self.scheduler.advance(1)
        self.assertEqual(self.engine.state.current_piece.y, y0 + 1)
        self.scheduler.advance(500)
        self.assertEqual(self.engine.state.current_piece.y, y0 + 2)

    def test_given_faster_gravity_when_next_cycle_arms_then_new_interval_used(self):
        y0 = self.engine.state.current_piece.y
        self.timing.start()
        self._load(gravity_interval_ms=100)
        self.scheduler.advance_to(500)
        self.assertEqual(self.engine.state.current_piece.y, y0 + 1)
        self.scheduler.advance_to(600)
        self.assertEqual(self.engine.state.current_piece.y, y0 + 2)

    def test_given_grounded_piece_when_lock_delay_elapses_then_piece_locks(self):
        self._load(current_piece=mono(0, H - 1))
        self.timing.start()
        self.scheduler.advance(500)
        self.assertTrue(self.timing.lock_delay_active)
        self.scheduler.advance(499)
        self.assertEqual(self.engine.state.board[H - 1, 0], 0)
        self.scheduler.advance(1)
        self.assertEqual(self.engine.state.board[H - 1, 0], 1)
        self.assertFalse(self.timing.lock_delay_active)

    def test_given_lock_delay_running_when_piece_leaves_ground_then_cancelled(self):
        board = GameGrid.empty(W, H).with_cells([(1, H - 1)], 3)
        self._load(board=board, current_piece=mono(1, H - 2))
        self.timing.start()
        self.scheduler.advance(500)
        self.assertTrue(self.timing.lock_delay_active)

        self.timing.dispatch(lambda: self.engine.move_horizontal(-1))
        self.assertFalse(self.timing.lock_delay_active)
        self.scheduler.advance(500)
        self.assertEqual(self.engine.state.current_piece, mono(0, H - 1))
        self.assertEqual(self.engine.state.board.filled_count(), 1)

    def test_given_pause_when_time_passes_then_nothing_moves_until_resume(self):
        y0 = self.engine.state.current_piece.y
        self.timing.start()
        self.timing.pause()
        self.assertFalse(self.timing.gravity_active)
        self.scheduler.advance(5000)
        self.assertEqual(self.engine.state.current_piece.y, y0)
        self.timing.resume()
        self.assertTrue(self.timing.gravity_active)
        self.scheduler.advance(500)
        self.assertEqual(self.engine.state.current_piece.y, y0 + 1)

    def test_given_lock_with_full_row_when_clear_delay_elapses_then_board_collapses(self):
        board = GameGrid.empty(W, H).with_row(H - 1, [0] + [1] * (W - 1))
        self._load(board=board, current_piece=mono(0, H - 1))
        self.timing.dispatch(self.engine.lock_expired)
        self.assertTrue(self.timing.line_clear_active)
        self.scheduler.advance(199)
        self.assertEqual(self.engine.state.clearing_lines, (H - 1,))
        self.scheduler.advance(1)
        self.assertEqual(self.engine.state.clearing_lines, ())
        self.assertEqual(self.engine.state.score, 100)

    def test_given_game_over_when_outcome_applied_then_all_timers_stop(self):
        board = GameGrid.empty(W, H).with_cells([(3, 0)], 2)
        self._load(board=board, current_piece=mono(3, -1))
        self.timing.start()
        self.timing.dispatch(self.engine.lock_expired)
        self.assertTrue(self.engine.state.game_over)
        self.assertFalse(self.timing.gravity_active)
        self.assertFalse(self.timing.lock_delay_active)
        self.assertEqual(self.scheduler.pending_count(), 0)


if __name__ == "__main__":
    unittest.main()
