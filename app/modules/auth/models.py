# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Password sign-in and session issuance
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (full_name stored in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the user behind a JWT
- auth.sign_out() - End the session

A database trigger on auth.users inserts the matching public.profiles row
(see app/modules/profiles/models.py), so every identity owns one profile.
"""
