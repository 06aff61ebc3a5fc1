"""
Analytics services.

Pure computations over already-fetched rows:
- Execution performance metrics and strategy breakdown
- Regime segmentation and per-regime performance
- Advanced risk metrics for a single backtest
- Multi-run comparison, ranking and correlation
- Result bundle validation and report export
"""
