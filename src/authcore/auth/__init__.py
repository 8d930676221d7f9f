"""Authentication core.

Learn: Two pieces, used in sequence by the request layer:
1. CredentialStore → email/password identities (bcrypt, unique email)
2. TokenIssuer → signed, expiring JWTs asserting an identity

Registration calls CredentialStore.create. Login calls
CredentialStore.verify and then TokenIssuer.issue. Protected
endpoints call TokenIssuer.verify, with no database lookup.
"""
