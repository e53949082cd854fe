"""Business logic services used by handlers.

Handlers build these lazily through ``handlers.dependencies`` so importing a
handler never opens a database connection or an AWS client.
"""
