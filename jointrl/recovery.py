import logging
import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from .config import SamplingError, SweepConfig
from .inference.models import get_model
from .simulate import simulate_joint_experiment


RECORD_COLUMNS = ['variant', 'iteration', 'noise_sd', 'mean', 'lower',
                  'upper', 'true_correlation']


def _simulate(config, noise_sd, rng):
    neural = config.neural.model_copy(update={'noise_sd': noise_sd})
    return simulate_joint_experiment(config.n_trials,
                                     config.environment,
                                     config.learner,
                                     config.scan,
                                     neural,
                                     rng=rng)


def fit_with_retries(model, dataset, sampling, rng):
    """Fits `model`, retrying with a fresh seed up to
    `sampling.max_retries` times if the sampler fails."""

    for attempt in range(sampling.max_retries + 1):
        seed = int(rng.integers(2**31 - 1))
        try:
            return model.fit(dataset, sampling=sampling, seed=seed)
        except SamplingError as e:
            if attempt == sampling.max_retries:
                raise
            logging.warning('Sampling {} failed (attempt {} of {}), retrying '
                            'with a new seed: {}'.format(model.name,
                                                         attempt + 1,
                                                         sampling.max_retries + 1,
                                                         e))


def run_recovery_cell(variant, noise_sd, iteration, config, seed_sequence,
                      base_dataset=None):
    """One (variant, noise level, iteration) cell of the sweep.

    Synthesizes amplitudes and signal at `noise_sd`, fits the model and
    returns a recovery record.
    """
    rng = np.random.default_rng(seed_sequence)

    logging.info('Fitting {} model, noise sd {}, iteration {}'.format(
        variant, noise_sd, iteration))

    if base_dataset is None:
        dataset = _simulate(config, noise_sd, rng)
    else:
        dataset = base_dataset.resynthesize(noise_sd, rng=rng)

    model = get_model(variant)
    fit_with_retries(model, dataset, config.sampling, rng)
    estimate = model.get_estimate()

    return {'variant': variant,
            'iteration': iteration,
            'noise_sd': noise_sd,
            'mean': estimate.mean,
            'lower': estimate.lower,
            'upper': estimate.upper,
            'true_correlation': dataset.true_correlation}


def run_recovery_sweep(config=None, **kwargs):
    """
    Fits every model variant to data synthesized at every noise level,
    `n_iterations` times each.

    Parameters
    ----------
    config : SweepConfig, optional
        if not given, a SweepConfig is built from the keyword arguments,
        e.g. `run_recovery_sweep(variants=['sequential'], n_iterations=5)`

    Returns
    -------
    records : pd.DataFrame
        one row per (variant, noise level, iteration), with the mean
        recovered correlation and the lower and upper bound of its
        interval
    """

    if config is None:
        config = SweepConfig(**kwargs)
    elif kwargs:
        config = config.model_copy(update=kwargs)
        config = SweepConfig.model_validate(config.model_dump())

    cells = [(variant, noise_sd, iteration)
             for variant in config.variants
             for noise_sd in config.noise_levels
             for iteration in range(1, config.n_iterations + 1)]

    behavior_seq, *cell_seqs = np.random.SeedSequence(config.seed).spawn(
        len(cells) + 1)

    if config.resimulate_behavior:
        base_dataset = None
    else:
        base_dataset = _simulate(config,
                                 config.neural.noise_sd,
                                 np.random.default_rng(behavior_seq))

    logging.info('Running {} recovery cells ({} variants, {} noise levels, '
                 '{} iterations)'.format(len(cells),
                                         len(config.variants),
                                         len(config.noise_levels),
                                         config.n_iterations))

    if config.n_jobs == 1:
        records = [run_recovery_cell(variant, noise_sd, iteration, config,
                                     seq, base_dataset)
                   for (variant, noise_sd, iteration), seq
                   in zip(cells, cell_seqs)]
    else:
        records = Parallel(n_jobs=config.n_jobs)(
            delayed(run_recovery_cell)(variant, noise_sd, iteration, config,
                                       seq, base_dataset)
            for (variant, noise_sd, iteration), seq in zip(cells, cell_seqs))

    return pd.DataFrame(records, columns=RECORD_COLUMNS)


def summarize_recovery(records):
    """Average recovery records over iterations, per variant and noise level."""

    grouped = records.groupby(['variant', 'noise_sd'])

    summary = grouped[['mean', 'lower', 'upper', 'true_correlation']].mean()
    summary['sd'] = grouped['mean'].std()
    summary['n_iterations'] = grouped.size()

    return summary.reset_index()
