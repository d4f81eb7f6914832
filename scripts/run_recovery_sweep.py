import logging
import os
import matplotlib.pyplot as plt
from jointrl import load_config, run_recovery_sweep, summarize_recovery
from jointrl.plotting import plot_recovery

logging.basicConfig(level=logging.INFO)

config = load_config(os.path.join(os.path.dirname(__file__), 'sweep.yml'))

records = run_recovery_sweep(config)
records.to_csv('recovery_records.tsv', sep='\t', index=False)

summary = summarize_recovery(records)
summary.to_csv('recovery_summary.tsv', sep='\t', index=False)
print(summary)

plot_recovery(summary)
plt.savefig('recovery.pdf')
