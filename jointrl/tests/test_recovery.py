import unittest
import numpy as np
import pandas as pd
from numpy.testing import assert_allclose
from jointrl import recovery
from jointrl.config import ConfigurationError, SamplingError, SweepConfig
from jointrl.inference.models import RecoveryEstimate
from jointrl.recovery import (run_recovery_sweep,
                              summarize_recovery,
                              RECORD_COLUMNS)


class FakeModel(object):
    """Stands in for a Stan fit: reports the true correlation, shrunk by the
    noise level."""

    failures = 0
    rejections = 0
    calls = 0

    def __init__(self, name):
        self.name = name

    def fit(self, dataset, sampling=None, seed=None):
        FakeModel.calls += 1

        if FakeModel.rejections > 0:
            FakeModel.rejections -= 1
            raise ConfigurationError('data rejected')

        if FakeModel.failures > 0:
            FakeModel.failures -= 1
            raise SamplingError('did not converge')

        self.dataset = dataset
        self.seed = seed
        return self

    def get_estimate(self):
        r = self.dataset.true_correlation / (1 + self.dataset.noise_sd)
        return RecoveryEstimate(r, r - .1, r + .1)


class RecoverySweepTest(unittest.TestCase):

    def setUp(self):
        self._get_model = recovery.get_model
        recovery.get_model = FakeModel
        FakeModel.failures = 0
        FakeModel.rejections = 0
        FakeModel.calls = 0

        self.config = SweepConfig(variants=['generative', 'sequential'],
                                  noise_levels=[0., .5, 1.],
                                  n_iterations=3,
                                  n_trials=20,
                                  seed=3)

    def tearDown(self):
        recovery.get_model = self._get_model
        FakeModel.failures = 0
        FakeModel.rejections = 0
        FakeModel.calls = 0

    def test_records(self):
        records = run_recovery_sweep(self.config)

        self.assertEqual(list(records.columns), RECORD_COLUMNS)
        self.assertEqual(len(records), 2 * 3 * 3)
        self.assertEqual(
            records.groupby(['variant', 'noise_sd']).size().tolist(),
            [3] * 6)
        self.assertEqual(sorted(records.iteration.unique()), [1, 2, 3])

    def test_deterministic_amplitudes(self):
        records = run_recovery_sweep(self.config)
        assert_allclose(records['true_correlation'], 1.)

        noiseless = records[records.noise_sd == 0]
        assert_allclose(noiseless['mean'], 1.)

    def test_reproducible(self):
        records1 = run_recovery_sweep(self.config)
        records2 = run_recovery_sweep(self.config)
        pd.testing.assert_frame_equal(records1, records2)

    def test_keyword_form(self):
        records = run_recovery_sweep(variants=['posthoc'],
                                     noise_levels=[0., 1.],
                                     n_iterations=2,
                                     n_trials=15,
                                     seed=1)
        self.assertEqual(len(records), 4)
        self.assertEqual(records.variant.unique().tolist(), ['posthoc'])

    def test_overrides(self):
        records = run_recovery_sweep(self.config, n_iterations=1)
        self.assertEqual(len(records), 6)

    def test_resimulate_behavior(self):
        config = self.config.model_copy(update={'resimulate_behavior': True,
                                                'variants': ['sequential']})
        records = run_recovery_sweep(config)
        self.assertEqual(len(records), 9)

    def test_retry(self):
        config = self.config.model_copy(update={
            'variants': ['sequential'],
            'noise_levels': [0.],
            'n_iterations': 1,
            'sampling': self.config.sampling.model_copy(
                update={'max_retries': 2})})

        FakeModel.failures = 2
        records = run_recovery_sweep(config)
        self.assertEqual(len(records), 1)

    def test_retries_exhausted(self):
        config = self.config.model_copy(update={
            'sampling': self.config.sampling.model_copy(
                update={'max_retries': 1})})

        FakeModel.failures = 2
        with self.assertRaises(SamplingError):
            run_recovery_sweep(config)

    def test_configuration_error_not_retried(self):
        config = self.config.model_copy(update={
            'variants': ['sequential'],
            'noise_levels': [0.],
            'n_iterations': 1,
            'sampling': self.config.sampling.model_copy(
                update={'max_retries': 2})})

        FakeModel.rejections = 1
        with self.assertRaises(ConfigurationError):
            run_recovery_sweep(config)

        self.assertEqual(FakeModel.calls, 1)


def test_summarize_recovery():
    records = pd.DataFrame({
        'variant': ['generative'] * 4 + ['posthoc'] * 2,
        'iteration': [1, 2, 1, 2, 1, 2],
        'noise_sd': [0., 0., 1., 1., 0., 0.],
        'mean': [1., .8, .5, .3, .9, .7],
        'lower': [.9, .7, .2, .0, .8, .6],
        'upper': [1., .9, .8, .6, 1., .8],
        'true_correlation': [1.] * 6})

    summary = summarize_recovery(records)

    assert len(summary) == 3
    assert list(summary.columns[:2]) == ['variant', 'noise_sd']

    row = summary.set_index(['variant', 'noise_sd']).loc[('generative', 1.)]
    assert_allclose(row['mean'], .4)
    assert_allclose(row['lower'], .1)
    assert_allclose(row['upper'], .7)
    assert_allclose(row['sd'], np.std([.5, .3], ddof=1))
    assert row['n_iterations'] == 2
