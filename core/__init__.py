"""core/ -- Settings and the error taxonomy shared by every layer.

Layer rule: core/ imports nothing from the rest of quoteshare.
"""
