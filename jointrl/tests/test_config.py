import unittest
from pydantic import ValidationError
from jointrl.config import (ConfigurationError,
                            LearnerConfig,
                            SweepConfig,
                            load_config)


class SweepConfigTest(unittest.TestCase):

    def test_defaults(self):
        config = SweepConfig()

        self.assertEqual(config.variants, ['generative', 'posthoc',
                                           'sequential'])
        self.assertEqual(config.noise_levels, [0., .25, .5, .75, 1.])
        self.assertEqual(config.n_trials, 100)
        self.assertEqual(config.environment.means, (0., 0.))
        self.assertEqual(config.environment.outcome_sd, .3)
        self.assertEqual(config.environment.drift_sd, .1)
        self.assertEqual(config.environment.decay, .99)
        self.assertEqual(config.learner.alpha, .2)
        self.assertEqual(config.learner.xi, 1.)

    def test_defaults_are_not_shared(self):
        a, b = SweepConfig(), SweepConfig()
        a.noise_levels.append(2.)
        self.assertEqual(len(b.noise_levels), 5)
        self.assertIsNot(a.sampling, b.sampling)

    def test_nested_dicts(self):
        config = SweepConfig(sampling={'chains': 2, 'draws': 100},
                             learner={'alpha': .5})
        self.assertEqual(config.sampling.chains, 2)
        self.assertEqual(config.sampling.warmup, 1000)
        self.assertEqual(config.learner.alpha, .5)

    def test_learning_rate_out_of_range(self):
        for alpha in [0., 1., 1.5, -.1]:
            with self.assertRaises(ValidationError):
                LearnerConfig(alpha=alpha)

    def test_unknown_variant(self):
        with self.assertRaises(ValidationError):
            SweepConfig(variants=['generative', 'bayesian'])

        with self.assertRaises(ValidationError):
            SweepConfig(variants=[])

    def test_noise_levels(self):
        with self.assertRaises(ValidationError):
            SweepConfig(noise_levels=[0., .5, .25])

        with self.assertRaises(ValidationError):
            SweepConfig(noise_levels=[-1., 0.])

        with self.assertRaises(ValidationError):
            SweepConfig(noise_levels=[])

    def test_non_positive_trials(self):
        with self.assertRaises(ValidationError):
            SweepConfig(n_trials=0)

    def test_n_jobs(self):
        with self.assertRaises(ValidationError):
            SweepConfig(n_jobs=0)

    def test_errors_are_value_errors(self):
        self.assertTrue(issubclass(ConfigurationError, ValueError))
        with self.assertRaises(ValueError):
            SweepConfig(n_iterations=0)


def test_load_config(tmp_path):
    fn = tmp_path / 'sweep.yml'
    fn.write_text('variants: [sequential]\n'
                  'noise_levels: [0.0, 1.0]\n'
                  'n_iterations: 3\n'
                  'seed: 12\n'
                  'learner:\n'
                  '  alpha: 0.3\n'
                  'sampling:\n'
                  '  chains: 2\n')

    config = load_config(str(fn))

    assert config.variants == ['sequential']
    assert config.noise_levels == [0., 1.]
    assert config.n_iterations == 3
    assert config.seed == 12
    assert config.learner.alpha == .3
    assert config.learner.xi == 1.
    assert config.sampling.chains == 2


def test_load_empty_config(tmp_path):
    fn = tmp_path / 'empty.yml'
    fn.write_text('')

    assert load_config(str(fn)) == SweepConfig()
