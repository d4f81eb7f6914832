import numpy as np
import seaborn as sns
import matplotlib.pyplot as plt


def plot_recovery(summary,
                  hue='variant',
                  palette=None,
                  transparency=0.2,
                  ground_truth=True,
                  ax=None,
                  legend=True):
    """Mean recovered correlation as a function of measurement noise.

    Parameters
    ----------
    summary : pd.DataFrame
        output of `summarize_recovery`, with columns `variant`, `noise_sd`,
        `mean`, `lower` and `upper`
    """

    if ax is None:
        ax = plt.gca()

    hue_order = list(summary[hue].unique())
    palette = sns.color_palette(palette, n_colors=len(hue_order))

    sns.lineplot(data=summary,
                 x='noise_sd',
                 y='mean',
                 hue=hue,
                 hue_order=hue_order,
                 palette=palette,
                 marker='o',
                 legend='auto' if legend else False,
                 ax=ax)

    for color, (_, d) in zip(palette, summary.groupby(hue, sort=False)):
        d = d.sort_values('noise_sd')
        ax.fill_between(d['noise_sd'], d['lower'], d['upper'],
                        color=color, alpha=transparency)

    if ground_truth and ('true_correlation' in summary):
        truth = summary.groupby('noise_sd')['true_correlation'].mean()
        ax.plot(truth.index, truth.values, c='k', ls='--', label='ground truth')

    ax.set_xlabel('Noise sd')
    ax.set_ylabel('Recovered correlation')

    sns.despine(ax=ax)

    return ax


def plot_trials(trials, palette=None):
    """Values, choices and prediction errors of a simulated learner."""

    palette = sns.color_palette(palette, n_colors=2)
    fig, axes = plt.subplots(2, 1, sharex=True, figsize=(8, 5))

    for option, color in zip((1, 2), palette):
        axes[0].plot(trials.index, trials['ev_%d' % option], c=color,
                     label='value %d' % option)
        axes[0].plot(trials.index, trials['mean_%d' % option], c=color,
                     ls='--', label='mean %d' % option)
        chosen = trials[trials['choice'] == option]
        axes[0].scatter(chosen.index, chosen['outcome'], color=color, s=8)

    axes[0].legend()
    axes[0].set_ylabel('value')

    axes[1].bar(trials.index, trials['prediction_error'], color='k')
    axes[1].axhline(0, c='k', ls='--')
    axes[1].set_ylabel('prediction error')
    axes[1].set_xlabel('trial')

    sns.despine()

    return fig


def plot_design_matrix(X, signal=None, palette=None, max_regressors=20):
    """Regressors of the design matrix, stacked with an offset, and
    optionally the signal they are fit to."""

    X = X.iloc[:, :max_regressors]

    n_regressors = X.shape[1]
    palette = sns.color_palette(palette, n_colors=n_regressors)

    max_reg = (X.max() - X.min()).max()
    offsets = np.arange(n_regressors) * max_reg * 1.1

    for i in range(n_regressors):
        plt.plot(X.iloc[:, i] + offsets[i],
                 X.index.get_level_values('time'), c=palette[i])

    if signal is not None:
        offset = offsets[-1] + max_reg * 2
        plt.plot(np.asarray(signal) - np.min(signal) + offset,
                 X.index.get_level_values('time'), c='k')
        offsets = np.append(offsets, offset)
        labels = list(X.columns) + ['signal']
    else:
        labels = list(X.columns)

    plt.gca().invert_yaxis()
    plt.ylabel('time (s)')
    plt.xticks(offsets, labels, rotation='vertical')

    sns.despine()
