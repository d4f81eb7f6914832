from collections import namedtuple
import logging
import numpy as np
from scipy import stats
from ..config import ConfigurationError, SamplingConfig
from .backends import compile_model


RecoveryEstimate = namedtuple('RecoveryEstimate', ['mean', 'lower', 'upper'])


class JointModel(object):
    """Base class of the brain-behavior models.

    Subclasses fit a `JointDataset` and summarize the posterior into a
    recovered correlation between prediction errors and BOLD amplitudes,
    with an interval.
    """

    name = None

    def __init__(self, backend='stan'):
        self.backend = backend
        self._compiled = {}

    def _get_compiled(self, name):
        if name not in self._compiled:
            self._compiled[name] = compile_model(name, backend=self.backend)
        return self._compiled[name]

    def _sample(self, name, data, sampling, seed):
        draws = self._get_compiled(name).sample(data,
                                                chains=sampling.chains,
                                                draws=sampling.draws,
                                                warmup=sampling.warmup,
                                                seed=seed)

        scalars = [key for key in draws.keys() if draws[key].ndim == 1]
        logging.info('Posterior of {} ({} model):\n{}'.format(
            name, self.name,
            draws.summary(scalars, alpha=sampling.interval_alpha)))

        return draws

    def fit(self, dataset, sampling=None, seed=None):
        raise NotImplementedError()

    def get_estimate(self):
        raise NotImplementedError()

    def _check_fitted(self):
        if not hasattr(self, 'results'):
            raise Exception('Model has not been sampled yet!')

    def __repr__(self):
        return '%s()' % type(self).__name__


def _estimate_from_draws(draws, name='R', alpha=0.05):
    lower, upper = draws.hpd(name, alpha=alpha)
    return RecoveryEstimate(float(draws.mean(name)), float(lower), float(upper))


def _second_seed(seed):
    if seed is None:
        return None
    return (seed + 1) % 2**32


class GenerativeModel(JointModel):
    """Learning rate, trial-wise amplitudes and their correlation with the
    prediction errors, all fit at once from choices, outcomes and signal."""

    name = 'generative'

    def fit(self, dataset, sampling=None, seed=None):

        if sampling is None:
            sampling = SamplingConfig()

        self.sampling = sampling
        self.results = self._sample('generative',
                                    dataset.to_stan_data(),
                                    sampling,
                                    seed)
        return self

    def get_estimate(self):
        self._check_fitted()
        return _estimate_from_draws(self.results, 'R',
                                    self.sampling.interval_alpha)


class _TwoStageModel(JointModel):

    neural_model = None

    def fit_behavior(self, dataset, sampling, seed=None):
        """Fits the learning model and returns the posterior mean
        prediction error of every trial."""
        data = {key: value for key, value in dataset.to_stan_data().items()
                if key in ('N', 'choice', 'outcome')}

        self.behavior_results = self._sample('behavior', data, sampling, seed)
        return self.behavior_results.mean('E_vector')

    def fit(self, dataset, sampling=None, seed=None, prediction_errors=None):
        """
        Parameters
        ----------
        dataset : JointDataset

        sampling : SamplingConfig, optional

        seed : int, optional

        prediction_errors : np.array (n_trials), optional
            point estimates of the prediction errors. If not given, they
            are estimated by fitting the behavioral model first.
        """

        if sampling is None:
            sampling = SamplingConfig()

        self.sampling = sampling

        if prediction_errors is None:
            prediction_errors = self.fit_behavior(dataset, sampling, seed)
            seed = _second_seed(seed)

        self.prediction_errors = np.asarray(prediction_errors, dtype=float)
        self.results = self._sample(
            self.neural_model,
            self._neural_data(dataset, self.prediction_errors),
            sampling,
            seed)

        return self

    def _neural_data(self, dataset, prediction_errors):
        raise NotImplementedError()


class SequentialModel(_TwoStageModel):
    """Behavioral and neural model fit one after the other. The neural model
    takes the point-estimated prediction errors as data and contains the
    correlation `R` as a parameter."""

    name = 'sequential'
    neural_model = 'sequential'

    def _neural_data(self, dataset, prediction_errors):
        data = dataset.to_stan_data(prediction_errors)
        del data['choice'], data['outcome']
        return data

    def get_estimate(self):
        self._check_fitted()
        return _estimate_from_draws(self.results, 'R',
                                    self.sampling.interval_alpha)


class PostHocModel(_TwoStageModel):
    """Behavioral model and trial-wise amplitudes are fit separately; their
    posterior means are correlated afterwards with a Pearson test."""

    name = 'posthoc'
    neural_model = 'amplitude'

    def _neural_data(self, dataset, prediction_errors):
        data = dataset.to_stan_data()
        del data['choice'], data['outcome']
        return data

    def get_point_estimates(self):
        self._check_fitted()
        return self.prediction_errors, self.results.mean('beta')

    def get_estimate(self):
        E_vector, beta = self.get_point_estimates()

        result = stats.pearsonr(E_vector, beta)
        ci = result.confidence_interval(
            confidence_level=1 - self.sampling.interval_alpha)

        return RecoveryEstimate(float(result.statistic),
                                float(ci.low),
                                float(ci.high))


MODELS = {model.name: model for model in (GenerativeModel,
                                           PostHocModel,
                                           SequentialModel)}


def get_model(name, *args, **kwargs):
    if name not in MODELS:
        raise ConfigurationError(f"Unknown model variant '{name}'. "
                                 f"Must be one of {sorted(MODELS)}")
    return MODELS[name](*args, **kwargs)
