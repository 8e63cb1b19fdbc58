"""
Query and aggregation layer.

Rates are derived at read time from stored counts (see rates.py).
"""
