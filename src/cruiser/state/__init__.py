"""Store engine.

Subscriber registry, middleware chain, dispatch strategies and the
store that composes them.  The store is the only component that ever
replaces the current state.
"""
