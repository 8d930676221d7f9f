"""authcore: credential store and bearer-token issuer.

Registers email/password identities, verifies them, and mints
time-bounded JWTs that prove identity on later requests.
"""

__version__ = "0.1.0"
