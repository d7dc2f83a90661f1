"""api/ -- HTTP surface for quoteshare: FastAPI app, request/response models, routers.

Layer rule: api/ may import every other package; nothing imports api/.
"""
