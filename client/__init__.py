"""client/ -- Session client for SessionGate.

A message-driven state machine that reconciles its view of the user with the
identity cookie held by the server.

Layer rule: client/ imports only stdlib and third-party libraries.
It does NOT import from api/, auth/ or core/; it reaches the server over HTTP.
"""
