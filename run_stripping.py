from pathlib import Path

import QuantLib as ql

from optionlet_stripper.config import StripperConfig
from optionlet_stripper.market import MarketLoader
from optionlet_stripper.optionlets import StrippedOptionletAdapter
from optionlet_stripper.reporting import (
    maybe_plot_smiles,
    maybe_plot_spread_sensitivity,
    save_config_snapshot,
    save_dataframe,
    save_optionlet_grid,
    save_stripping_summary,
)
from optionlet_stripper.sensitivity import spreads_vs_atm_shift
from optionlet_stripper.stripper import AtmOptionletStripper


def main():
    # -------------------------------------------------------------------------
    # 0. Inputs (adjust these for your dataset)
    # -------------------------------------------------------------------------
    val_date = ql.Date(10, 9, 2025)

    cfg = StripperConfig(val_date)
    cfg.apply_global_settings()

    project_root = Path(__file__).resolve().parent
    data_dir = project_root / "data"
    out_dir = project_root / "outputs"

    curve_csv = data_dir / "euribor_curve.csv"
    atm_csv = data_dir / "atm_cap_vols.csv"
    grid_csv = data_dir / "optionlet_vols.csv"

    # -------------------------------------------------------------------------
    # 1. Load market data
    # -------------------------------------------------------------------------
    print("--- 1. Market data ---")
    loader = MarketLoader(cfg)
    curve = loader.load_curve(str(curve_csv))
    index = loader.make_index("6M", curve)
    atm_curve = loader.load_atm_vols(str(atm_csv))
    upstream = loader.load_optionlet_grid(str(grid_csv), index)
    print(f"ATM tenors: {', '.join(str(p) for p in atm_curve.option_tenors)}")
    print(f"Optionlets: {upstream.optionlet_maturities()}")

    # -------------------------------------------------------------------------
    # 2. Strip
    # -------------------------------------------------------------------------
    print("\n--- 2. ATM stripping ---")
    stripper = AtmOptionletStripper(upstream, atm_curve, cfg)
    summary = stripper.to_frame()

    print(f"{'TENOR':<8} | {'ATM VOL':<9} | {'STRIKE':<9} | {'PRICE':<11} | {'SPREAD':<9}")
    print("-" * 58)
    for _, row in summary.iterrows():
        print(
            f"{row['tenor']:<8} | {row['atm_vol']:<9.4%} | {row['atm_strike']:<9.4%} | "
            f"{row['atm_price']:<11.6f} | {row['spread'] * 1e4:<7.2f}bp"
        )

    surface = StrippedOptionletAdapter(stripper)
    t_mid = stripper.optionlet_fixing_times()[len(stripper.optionlet_fixing_times()) // 2]
    print(f"\nStripped vol at t={t_mid:.2f}, K=3%: {surface.volatility(t_mid, 0.03):.4%}")

    # -------------------------------------------------------------------------
    # 3. Outputs (CSV + figures)
    # -------------------------------------------------------------------------
    save_stripping_summary(stripper, out_dir)
    save_optionlet_grid(upstream, out_dir, "optionlet_grid_upstream.csv")
    save_optionlet_grid(stripper, out_dir, "optionlet_grid_stripped.csv")
    save_config_snapshot(cfg, out_dir)
    maybe_plot_smiles(stripper, out_dir)

    # -------------------------------------------------------------------------
    # 4. Sensitivity: spreads vs parallel ATM vol shift
    # -------------------------------------------------------------------------
    shifts_bps = [-200, -100, -50, 0, 50, 100, 200]
    df_shift = spreads_vs_atm_shift(stripper, shifts_bps)
    save_dataframe(df_shift, out_dir, "sensitivity_spreads_vs_atm_shift.csv")
    maybe_plot_spread_sensitivity(df_shift, out_dir)

    print(f"\nOutputs written to: {out_dir}")


if __name__ == "__main__":
    main()
