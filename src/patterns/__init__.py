"""
Pattern Layers
==============
Pure functions over chronologically sorted entries, one module per layer.

Modules:
  aggregation       - day / time-of-day / weekday / month buckets
  trend_layer       - mean, volatility, OLS trend, rolling anomalies
  correlation_layer - label deltas, trigger bundles, QoL splits
  episode_layer     - rolling baseline + flare episodes
  medication_layer  - relief per medication and timing window
  predictive_layer  - risk, flare outlook, forecast
"""
