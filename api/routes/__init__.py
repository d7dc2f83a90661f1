"""api/routes/ -- One APIRouter per resource: auth, quotes, groups."""
