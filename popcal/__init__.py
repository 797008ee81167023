"""
popcal: month calendar layout for time-bounded items (events, pop-ups).
"""
