"""
Tab-level analyzers: domain context, hoarder scoring and value ranking.
"""
