"""
Citation verification against the local statute snapshot.
"""
