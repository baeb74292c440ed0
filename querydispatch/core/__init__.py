"""
Core: settings, errors, endpoint models, retry, drivers and the connectivity probe.
"""
