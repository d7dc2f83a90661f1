"""groups/ -- Membership rows and the group-as-row-set store.

Layer rule: groups/ may import core/ and db/engine.py, never auth/ or api/.
"""
