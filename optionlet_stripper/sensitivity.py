"""Sensitivity sweeps for the stripped spreads.

The sweep bumps the live ATM quotes of the term curve, lets the lazy
stripper recalculate, and records the solved spread per tenor. The quotes
are restored afterwards, even when a pass fails.

The function returns a ``pandas.DataFrame`` in a *wide* format: the first
column is the x-axis, and each additional column is an ATM tenor.
"""

import pandas as pd


def spreads_vs_atm_shift(stripper, shifts_bps):
    """Solved spreads under parallel shifts of the ATM term volatilities.

    Parameters
    ----------
    stripper : optionlet_stripper.stripper.AtmOptionletStripper
    shifts_bps : iterable[float]
        Parallel shifts (in vol bps) added to every ATM quote.
    """
    quotes = stripper.atm_curve.quotes()
    labels = [str(p) for p in stripper.atm_curve.option_tenors]
    base = [q.value for q in quotes]

    rows = []
    try:
        for bps in shifts_bps:
            shift = float(bps) / 10000.0
            for q, v in zip(quotes, base):
                q.set_value(v + shift)
            row = {"atm_shift_bps": float(bps)}
            row.update(zip(labels, stripper.spreads_vol()))
            rows.append(row)
    finally:
        for q, v in zip(quotes, base):
            q.set_value(v)

    return pd.DataFrame(rows)
