"""
Pure calculators: date ranges, adaptive thresholds, tab age and
period-over-period comparison.
"""
