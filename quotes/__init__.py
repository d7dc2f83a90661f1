"""quotes/ -- Quote records and their repository.

Layer rule: quotes/ may import core/ and db/engine.py, never auth/ or api/.
"""
