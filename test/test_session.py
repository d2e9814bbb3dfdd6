import unittest

import numpy as np
from fakes import RecordingAdapter

from sampling_distribution import DemoConfig, PopulationKind, SamplerState, Session
from sampling_distribution.config import graph_dimensions, validate_sample_size
from sampling_distribution.distributions import DistributionFamily
from sampling_distribution.exceptions import (
    InvalidPopulationError,
    InvalidRepetitionsError,
    InvalidSampleSizeError,
    SdmUnavailableError,
)
from sampling_distribution.histogram import TrackMode
from sampling_distribution.presentation import ClearClass, DrawText
from sampling_distribution.session import MEAN_BLOCK_CLASS, POPULATION_CANVAS, SAMPLE_CLASS


def last_text(adapter, canvas):
    return adapter.of_type(DrawText, canvas)[-1].text


def contains(interval, value):
    lower, upper = interval
    return lower <= round(value, 5) < upper


class TestSession(unittest.TestCase):

    def setUp(self):
        self.adapter = RecordingAdapter()
        self.session = Session(self.adapter, seed=42)

    def test_initial_state(self):
        s = self.session
        self.assertEqual(SamplerState.IDLE, s.state)
        self.assertEqual(100, len(s.bin_map))
        self.assertEqual(70.0, s.bin_map[0][0])
        self.assertEqual(130.0, s.bin_map[-1][1])
        self.assertEqual(0, s.animation_bins.sum())
        self.assertGreater(s.population.data.size, 0)
        self.assertEqual(0, s.sdm.data.size)
        self.assertAlmostEqual(10 / np.sqrt(10), s.sdm.sd)
        self.assertEqual("Population parameters: mean = 100 sd = 10", last_text(self.adapter, POPULATION_CANVAS))

    def test_sample_once(self):
        s = self.session
        outcome = s.sample_once()
        self.assertEqual(SamplerState.IDLE, s.state)
        self.assertEqual(10, len(outcome.sample))
        self.assertEqual(round(outcome.raw_mean, 2), outcome.mean)
        self.assertEqual(1, s.animation_bins.sum())
        self.assertEqual(1, s.animation_bins[outcome.bin.index])
        self.assertTrue(contains(s.bin_map[outcome.bin.index], outcome.raw_mean))

        blocks = self.adapter.draws(MEAN_BLOCK_CLASS)
        self.assertEqual(1, len(blocks))
        self.assertEqual(200 - 10, blocks[0].y)
        self.assertEqual(10, blocks[0].height)
        self.assertEqual(0.0, blocks[0].start_y)
        self.assertGreater(len(self.adapter.draws(SAMPLE_CLASS)), 0)
        self.assertTrue(last_text(self.adapter, "sdm-graph").startswith("Sample statistics: mean = "))

    def test_blocks_stack(self):
        s = self.session
        s.population.data = np.full(50, 100.3)
        s.sample_once()
        s.sample_once()
        blocks = self.adapter.draws(MEAN_BLOCK_CLASS)
        self.assertEqual([190.0, 180.0], [b.y for b in blocks])
        self.assertEqual(blocks[0].x, blocks[1].x)
        self.assertEqual(2, s.animation_bins[50])

    def test_sample_bar_sits_under_its_mean_block(self):
        s = self.session
        s.population.data = np.full(50, 70.67)
        outcome = s.sample_once()
        self.assertEqual(1, outcome.bin.index)
        bars = self.adapter.draws(SAMPLE_CLASS)
        self.assertEqual(1, len(bars))
        bar, block = bars[0], self.adapter.draws(MEAN_BLOCK_CLASS)[0]
        self.assertLessEqual(bar.x, s.value_to_pixel(70.67))
        self.assertLess(s.value_to_pixel(70.67), bar.x + bar.width)
        self.assertEqual(block.x, bar.x)
        self.assertEqual(block.width, bar.width)
        self.assertEqual(200 - 10 * s.config.block_height, bar.y)

    def test_batch(self):
        s = self.session
        s.set_repetitions(25)
        self.assertAlmostEqual(0.4, s.block_height)
        outcomes = s.sample()
        self.assertEqual(25, len(outcomes))
        self.assertEqual(25, s.animation_bins.sum())
        self.assertEqual(25, len(self.adapter.draws(MEAN_BLOCK_CLASS)))
        self.assertEqual([], self.adapter.draws(SAMPLE_CLASS))
        self.assertEqual(SamplerState.IDLE, s.state)

    def test_batch_state_and_cancel(self):
        s = self.session
        states = []
        done = 0
        for chunk in s.iter_sample_many(100, chunk_size=4, cancelled=lambda: done >= 12):
            states.append(s.state)
            done += len(chunk)
        self.assertEqual(12, done)
        self.assertTrue(all(state == SamplerState.SAMPLING for state in states))
        self.assertEqual(SamplerState.IDLE, s.state)
        self.assertEqual(12, s.animation_bins.sum())

    def test_same_seed_same_means(self):
        other = Session(RecordingAdapter(), seed=42)
        means = [self.session.sample_once().raw_mean for _ in range(5)]
        self.assertEqual(means, [other.sample_once().raw_mean for _ in range(5)])

    def test_invalid_sample_size_changes_nothing(self):
        s = self.session
        s.sample_once()
        for value in ("1", "101", "abc", "", "\u00b2", "+-5", "1_0", 2.5, True, None):
            with self.assertRaises(InvalidSampleSizeError):
                s.set_sample_size(value)
        self.assertEqual(10, s.sample_size)
        self.assertEqual(1, s.animation_bins.sum())

    def test_set_sample_size(self):
        s = self.session
        s.sample_once()
        self.assertEqual(25, s.set_sample_size("25"))
        self.assertEqual(2.0, s.sdm.sd)
        self.assertEqual(0, s.animation_bins.sum())
        self.assertEqual(25, len(s.sample_once().sample))

    def test_invalid_repetitions(self):
        with self.assertRaises(InvalidRepetitionsError):
            self.session.set_repetitions(3)
        self.assertEqual(1, self.session.repetitions)

    def test_reset_all(self):
        s = self.session
        s.sample_once()
        self.adapter.clear()
        s.reset_all()
        s.reset_all()
        self.assertEqual(0, s.animation_bins.sum())
        self.assertEqual(100, len(s.bin_map))
        cleared = {e.style_class for e in self.adapter.of_type(ClearClass)}
        self.assertEqual({SAMPLE_CLASS, MEAN_BLOCK_CLASS}, cleared)

    def test_classification_failure_skips_block(self):
        s = self.session
        s.bin_map = ((0.0, 1.0),)
        s.animation_bins = np.zeros(1, dtype=int)
        with self.assertLogs("sampling_distribution.binning", level="ERROR"):
            outcome = s.sample_once()
        self.assertIsNone(outcome.bin)
        self.assertEqual([], self.adapter.draws(MEAN_BLOCK_CLASS))
        self.assertEqual(SamplerState.IDLE, s.state)


class TestPopulations(unittest.TestCase):

    def setUp(self):
        self.adapter = RecordingAdapter()
        self.session = Session(self.adapter, seed=3)

    def test_bounded_population(self):
        s = self.session
        s.sample_once()
        s.change_population("bounded")
        self.assertEqual(PopulationKind.BOUNDED, s.population_kind)
        self.assertEqual(TrackMode.BOUNDED, s.population.mode)
        self.assertEqual(100, len(s.bin_map))
        self.assertEqual(0.0, s.bin_map[0][0])
        self.assertEqual(1.1, s.bin_map[-1][1])
        self.assertEqual(0, s.animation_bins.sum())
        self.assertFalse(s.sdm_visible)
        self.assertTrue(s.sdm.hidden)
        self.assertEqual("Population parameters: p = 0.1", last_text(self.adapter, POPULATION_CANVAS))
        with self.assertRaises(SdmUnavailableError):
            s.set_sdm_visible(True)

        outcome = s.sample_once()
        self.assertGreaterEqual(outcome.raw_mean, 0.0)
        self.assertLessEqual(outcome.raw_mean, 0.9)
        self.assertIsNotNone(outcome.bin)
        self.assertTrue(contains(s.bin_map[outcome.bin.index], outcome.raw_mean))

    def test_uniform_population_locks_sdm(self):
        s = self.session
        s.change_population(PopulationKind.UNIFORM)
        self.assertEqual(DistributionFamily.UNIFORM, s.population.family)
        self.assertFalse(s.sdm_visible)
        self.assertEqual("Population parameters: mean = 100", last_text(self.adapter, POPULATION_CANVAS))
        with self.assertRaises(SdmUnavailableError):
            s.set_sdm_visible(True)

        s.change_population("normal")
        s.set_sdm_visible(True)
        self.assertTrue(s.sdm_visible)
        self.assertFalse(s.sdm.hidden)

    def test_narrow_population(self):
        s = self.session
        s.change_population("normal-narrow")
        self.assertAlmostEqual(94.0, s.bin_map[0][0])
        self.assertAlmostEqual(106.0, s.bin_map[-1][1])
        self.assertAlmostEqual(2 / np.sqrt(10), s.sdm.sd)
        self.assertTrue(s.sdm_visible)
        outcome = s.sample_once()
        self.assertIsNotNone(outcome.bin)

    def test_unknown_population(self):
        with self.assertRaises(InvalidPopulationError):
            self.session.change_population("poisson")
        self.assertEqual(PopulationKind.NORMAL, self.session.population_kind)


class TestLock(unittest.TestCase):

    def setUp(self):
        self.session = Session(RecordingAdapter(), DemoConfig(canvas_height=30), seed=5)

    def test_locks_when_a_bin_is_full(self):
        s = self.session
        for _ in range(2000):
            if s.sample_once() is None:
                break
        self.assertTrue(s.locked)
        self.assertEqual(3, s.animation_bins.max())
        counts = s.animation_bins.copy()
        self.assertIsNone(s.sample_once())
        np.testing.assert_array_equal(counts, s.animation_bins)

        s.reset_all()
        self.assertEqual(SamplerState.IDLE, s.state)
        self.assertIsNotNone(s.sample_once())

    def test_batch_stops_at_lock(self):
        s = self.session
        outcomes = s.sample_many(2000)
        self.assertTrue(s.locked)
        self.assertLess(len(outcomes), 2000)
        self.assertEqual(len(outcomes), s.animation_bins.sum())
        self.assertEqual(3, s.animation_bins.max())
        self.assertEqual([], s.sample_many(5))


class TestConfig(unittest.TestCase):

    def test_graph_dimensions(self):
        self.assertEqual((800.0, 200.0), graph_dimensions(1400))
        self.assertEqual((400.0, 100.0), graph_dimensions(600))

    def test_validate_sample_size(self):
        self.assertEqual(2, validate_sample_size("2"))
        self.assertEqual(100, validate_sample_size(100))
        self.assertEqual(40, validate_sample_size(" 40 "))
        self.assertEqual(30, validate_sample_size(30.0))

    def test_superscripts_and_fractions_are_rejected(self):
        for text in ("\u00b2", "1\u00b2", "\u2155"):
            with self.assertRaises(InvalidSampleSizeError):
                validate_sample_size(text)
