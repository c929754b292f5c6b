# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.16.1
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# %% jupyter={"source_hidden": true}
import matplotlib.pyplot as plt

import lvcomp.meta as meta
from lvcomp import Competition, SimulationConfig, recompute

# %% [markdown]
# Lotka-Volterra competition between two species ([wikipedia][1])
#
# The engine only computes data. Everything below, from the figure layout to the
# caption, is done by the caller with the values stored in the report.
#
# [1]: https://en.wikipedia.org/wiki/Competitive_Lotka%E2%80%93Volterra_equations

# %%
options = dict(
    n1=10,
    n2=10,
    k1=500,
    k2=500,
    alpha=0.75,
    beta=0.75,
    mode="steady_state",
)
report = recompute(SimulationConfig.from_options(options))
result = report.result

print(report.outcome.value, f"at t={result.final[0]:.1f}")

# %% [markdown]
# Parameters of the model, with the descriptions attached to the `Competition` fields.

# %%
params = report.config.params
for name, p in meta.params(Competition).items():
    print(f"{name:<6} {getattr(params, name):<8g} {p.desc}")

# %% [markdown]
# Trajectory in the phase plane, together with both isoclines.
# With a zero competition coefficient one isocline is unbounded and
# `report.bounds` is ``None``, in which case the axes are left to matplotlib.

# %%
fig, (phase, series) = plt.subplots(1, 2, figsize=(11, 5))

lines = report.isoclines
for segment, color in [(lines.species1, "C0"), (lines.species2, "C1")]:
    if segment.bounded:
        (x0, y0), (x1, y1) = segment
        phase.plot([x0, x1], [y0, y1], color=color, linestyle="--")

phase.plot(result.N1, result.N2, color="k", label="trajectory")
for point in report.equilibria:
    phase.plot(*point, "o", color="gray")

if report.bounds is not None:
    phase.set_xlim(0, report.bounds.x_max)
    phase.set_ylim(0, report.bounds.y_max)
phase.set_xlabel("$N_1$")
phase.set_ylabel("$N_2$")
phase.legend(loc="upper right")

# %% [markdown]
# Time series, with values truncated for integer display.

# %%
table = result.truncated()
series.plot(table[:, 0], table[:, 1], label="species 1")
series.plot(table[:, 0], table[:, 2], label="species 2")
series.set_xlabel("time")
series.legend(loc="lower right")

fig.suptitle(report.caption)
fig.tight_layout()
plt.show()
