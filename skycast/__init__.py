"""SkyCast - Weather Intelligence Dashboard

A small weather forecasting toolkit with:
- Calendar + rolling-statistic feature engineering
- LSTM next-day temperature regression
- Feed-forward weather category classification
- Streamlit UI
"""

__version__ = "1.0.4"
