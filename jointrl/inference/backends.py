try:
    import stan
except ImportError:
    stan = None

import logging
import os
import warnings
import numpy as np
import pandas as pd
from ..config import ConfigurationError, SamplingError
from .utils import get_hpd, get_hpd_frame

__dir__ = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_model_code(name):
    fn = os.path.join(__dir__, 'stan_models', '%s.stan' % name)

    if not os.path.exists(fn):
        available = sorted(f[:-5] for f in os.listdir(os.path.dirname(fn))
                           if f.endswith('.stan'))
        raise ValueError(f"Stan model '{name}' not available. "
                         f"Must be one of {available}")

    with open(fn, 'r') as f:
        return f.read()


class DrawCollection(object):
    """Posterior draws, indexed by parameter name.

    Every parameter is stored as an array with the draws (chains
    concatenated) along the first axis.
    """

    def __init__(self, draws):
        self.draws = {key: np.asarray(value) for key, value in draws.items()}

    def __getitem__(self, name):
        if name not in self.draws:
            raise KeyError(f"No draws for parameter '{name}'. Available: "
                           f"{sorted(self.draws)}")
        return self.draws[name]

    def __contains__(self, name):
        return name in self.draws

    def keys(self):
        return self.draws.keys()

    @property
    def n_draws(self):
        return len(next(iter(self.draws.values())))

    def mean(self, name):
        return self[name].mean(0)

    def hpd(self, name, alpha=0.05):
        return get_hpd(self[name], alpha=alpha)

    def get_traces(self, name, n=None):
        """Draws of `name` as a DataFrame, one column per element.

        If `n` is given, the draws are thinned to (at most) `n` evenly
        spaced samples.
        """
        traces = self[name]
        traces = traces.reshape((traces.shape[0], -1))

        if n is not None:
            if n > self.n_draws:
                warnings.warn('You asked for %d samples, but there are only '
                              '%d' % (n, self.n_draws))

            stepsize = int(max(np.floor(self.n_draws / n), 1))
            traces = traces[::stepsize][:n]

        if traces.shape[1] == 1:
            columns = [name]
        else:
            columns = ['%s.%d' % (name, i)
                       for i in range(1, traces.shape[1] + 1)]

        return pd.DataFrame(traces, columns=columns)

    def summary(self, names=None, alpha=0.05):
        if names is None:
            names = list(self.keys())

        traces = pd.concat([self.get_traces(name) for name in names], axis=1)
        hpd = get_hpd_frame(traces, alpha=alpha)
        hpd.insert(0, 'mean', traces.mean())
        return hpd


class CompiledModel(object):

    def __init__(self, name=None):
        self.name = name

    def sample(self, data, chains=4, draws=1000, warmup=1000, seed=None,
               *args, **kwargs):
        raise NotImplementedError()


class StanModel(CompiledModel):
    """A Stan program, sampled with PyStan.

    Either `name` (one of the programs in `jointrl/stan_models`) or
    `model_code` should be given.
    """

    def __init__(self, name=None, model_code=None):

        if stan is None:
            raise ImportError("This feature requires pystan. Please install "
                              "with 'pip install jointrl[stan]'")

        if (name is None) and (model_code is None):
            raise ValueError('Provide either the name of a Stan model or '
                             'its code')

        super(StanModel, self).__init__(name)

        if model_code is None:
            model_code = get_model_code(name)

        self.model_code = model_code

    def sample(self, data, chains=4, draws=1000, warmup=1000, seed=None,
               *args, **kwargs):

        logging.info('Sampling Stan model {} ({} chains, {} draws)'.format(
            self.name, chains, draws))

        try:
            posterior = stan.build(self.model_code,
                                   data=_to_stan_types(data),
                                   random_seed=seed)
        except ValueError as e:
            raise ConfigurationError('Data rejected by Stan model {}: {}'.format(
                self.name, e)) from e
        except RuntimeError as e:
            raise SamplingError('Building Stan model {} failed: {}'.format(
                self.name, e)) from e

        try:
            self.results = posterior.sample(num_chains=chains,
                                            num_samples=draws,
                                            num_warmup=warmup,
                                            *args,
                                            **kwargs)
        except RuntimeError as e:
            raise SamplingError('Sampling of Stan model {} failed: {}'.format(
                self.name, e)) from e

        n_draws = chains * draws
        param_draws = {}

        for key, dims in zip(self.results.param_names, self.results.dims):
            # PyStan puts the draws on the last axis
            value = np.asarray(self.results[key])
            value = value.reshape(tuple(dims) + (n_draws,))
            param_draws[key] = np.moveaxis(value, -1, 0)

        return DrawCollection(param_draws)


def _to_stan_types(data):
    converted = {}
    for key, value in data.items():
        if isinstance(value, np.ndarray):
            value = value.tolist()
        elif isinstance(value, np.integer):
            value = int(value)
        elif isinstance(value, np.floating):
            value = float(value)
        converted[key] = value
    return converted


def compile_model(name=None, backend='stan', model_code=None):

    if backend == 'stan':
        return StanModel(name, model_code=model_code)
    else:
        raise NotImplementedError(f"Backend '{backend}' is not implemented")
