"""
Recovering brain-behavior correlations
======================================
Model-based fMRI asks whether trial-by-trial quantities of a learning
model, such as reward prediction errors, covary with the BOLD response.
How well such a correlation can be recovered depends on how the
behavioral and neural parts of the analysis are combined, and on how
noisy the neural data is.

Here we simulate a learner on a drifting two-armed bandit, build an
fMRI signal whose trial-wise amplitudes are proportional to its
prediction errors, and compare three ways of recovering that relation.
"""

# Import libraries and set up plotting
import matplotlib.pyplot as plt
import seaborn as sns
from jointrl import simulate_joint_experiment
from jointrl.config import EnvironmentConfig, LearnerConfig, NeuralConfig
from jointrl.plotting import plot_trials, plot_design_matrix
sns.set_style('white')
sns.set_context('notebook')

##############################################################################
# Simulate behavior and signal
# ----------------------------
# 100 trials, reward means that drift around 0, a learning rate of 0.2.
# The amplitude of every trial is exactly its prediction error
# (`amplitude_sd=0`), so the true correlation is 1.
dataset = simulate_joint_experiment(
    n_trials=100,
    environment=EnvironmentConfig(means=(0, 0), outcome_sd=.3,
                                  drift_sd=.1, decay=.99),
    learner=LearnerConfig(alpha=.2, xi=1.),
    neural=NeuralConfig(coefficient=1., amplitude_sd=0., noise_sd=.5),
    seed=1)

plot_trials(dataset.trials)

##############################################################################
# Every trial gets its own HRF regressor
plt.figure(figsize=(8, 8))
plot_design_matrix(dataset.X, dataset.signal, max_regressors=10)

##############################################################################
# Recovery under increasing noise
# -------------------------------
# For every model and every noise level we redraw the measurement noise,
# fit the model with Stan and store the recovered correlation.
# This takes a while: 3 models x 5 noise levels x 3 iterations.
from jointrl import run_recovery_sweep, summarize_recovery
from jointrl.plotting import plot_recovery

records = run_recovery_sweep(noise_levels=[0, .25, .5, .75, 1.],
                             n_iterations=3,
                             n_trials=100,
                             seed=1,
                             sampling={'chains': 2, 'draws': 500,
                                       'warmup': 500})

summary = summarize_recovery(records)

plt.figure()
plot_recovery(summary)
