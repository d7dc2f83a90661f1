"""auth/ -- Credentials, bearer tokens and authorization policy for quoteshare.

Layer rule: auth/ may import core/, db/, groups/ and quotes/ models, never api/.
api/ imports from auth/, not the other way around.
"""
