import json
from pathlib import Path

import pandas as pd


def ensure_dir(path):
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def optionlet_grid_frame(source):
    """Long-format grid: one row per (expiry, strike)."""
    fixing_dates = source.optionlet_fixing_dates()
    fixing_times = source.optionlet_fixing_times()
    rows = []
    for i, (d, t) in enumerate(zip(fixing_dates, fixing_times)):
        for k, v in zip(source.optionlet_strikes(i), source.optionlet_volatilities(i)):
            rows.append({
                "expiry": i,
                "fixing_date": d.ISO(),
                "fixing_time": float(t),
                "strike": float(k),
                "vol": float(v),
            })
    return pd.DataFrame(rows)


def save_stripping_summary(stripper, output_dir):
    """Save the per-tenor table (ATM vol, strike, price, spread) as CSV."""
    out = ensure_dir(output_dir)
    csv_path = out / "stripping_summary.csv"
    stripper.to_frame().to_csv(csv_path, index=False)
    return csv_path


def save_optionlet_grid(source, output_dir, filename="optionlet_grid.csv"):
    """Save a strike/volatility grid (upstream or stripped) as CSV."""
    out = ensure_dir(output_dir)
    path = out / filename
    optionlet_grid_frame(source).to_csv(path, index=False)
    return path


def save_config_snapshot(cfg, output_dir):
    """Persist the config knobs as JSON (reproducibility)."""
    out = ensure_dir(output_dir)
    path = out / "config_snapshot.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cfg.snapshot(), f, indent=2, sort_keys=True)
    return path


def save_dataframe(df, output_dir, filename):
    """Save a DataFrame to CSV inside ``output_dir``."""
    out = ensure_dir(output_dir)
    p = out / filename
    df.to_csv(p, index=False)
    return p


def _save_figure(plt, fig, output_dir, filename_png):
    fig.tight_layout()
    fig_dir = ensure_dir(Path(output_dir) / "figures")
    p = fig_dir / filename_png
    fig.savefig(p, dpi=200)
    plt.close(fig)
    return p


def maybe_plot_smiles(source, output_dir, filename_png="optionlet_smiles.png", expiries=None):
    """Plot the strike smile of selected expiries.

    If matplotlib is not available, this function does nothing.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        return None

    times = source.optionlet_fixing_times()
    if expiries is None:
        expiries = range(len(times))

    fig = plt.figure()
    ax = fig.add_subplot(111)
    for i in expiries:
        ax.plot(source.optionlet_strikes(i), source.optionlet_volatilities(i),
                marker="o", linewidth=1.2, label=f"t={times[i]:.2f}")
    ax.set_xlabel("Strike")
    ax.set_ylabel("Optionlet volatility")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=7)
    return _save_figure(plt, fig, output_dir, filename_png)


def maybe_plot_spread_sensitivity(df, output_dir, filename_png="spreads_vs_atm_shift.png"):
    """Plot the solved spreads (in bps) of each ATM tenor against the ATM shift.

    ``df`` is the wide frame of
    :func:`optionlet_stripper.sensitivity.spreads_vs_atm_shift`. The zero-spread
    line marks where the upstream grid already prices the ATM cap.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        return None

    shifts = df["atm_shift_bps"].values
    tenors = [c for c in df.columns if c != "atm_shift_bps"]

    fig = plt.figure()
    ax = fig.add_subplot(111)
    ax.axhline(0.0, color="grey", linewidth=0.8)
    for tenor in tenors:
        ax.plot(shifts, df[tenor].values * 1e4, marker="o", linewidth=1.5, label=tenor)
    ax.set_title("Solved spread vs ATM volatility shift")
    ax.set_xlabel("ATM vol shift (bps)")
    ax.set_ylabel("Spread (bps)")
    ax.grid(True, alpha=0.3)
    ax.legend(title="cap tenor", fontsize=8)
    return _save_figure(plt, fig, output_dir, filename_png)
