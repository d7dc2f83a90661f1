"""db/ -- Storage engine plumbing and the Store capability interface.

Layer rule: db/engine.py imports only core/. db/store.py is the one place that
assembles the concrete auth/, groups/ and quotes/ stores behind one object.
"""
