# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id on delete cascade)
- full_name: text (nullable) - copied from user_metadata.full_name at sign-up
- email: text (nullable) - copied from auth.users.email at sign-up
- role: text (not null, default: 'member') - values: admin, member
- created_at: timestamp (default: now())

Trigger on auth.users (after insert):
    insert into public.profiles (id, email, full_name)
    values (new.id, new.email, new.raw_user_meta_data->>'full_name');

Profiles are never deleted by the application; admins only change role.
"""
