"""Authentication primitives.

Learn: Three pieces, leaves first:
1. PasswordHasher → bcrypt hash/verify
2. TokenIssuer → signed, time-bounded JWT asserting (user_id, username)
3. get_current_user → the session gate every protected route passes through

Services receive the hasher and issuer at construction time.
"""
