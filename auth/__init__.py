"""auth/ -- Credential hashing, session tokens and the player credential store.

Layer rule: auth/ imports only stdlib + third-party libraries and auth/ itself.
It does NOT import from api/ or core/. api/ imports from auth/, not the other
way around.
"""
