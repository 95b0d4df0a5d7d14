# Supabase tables: pairs, pair_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

pairs:
- id: bigint (primary key, identity)
- weekly_cycle_id: bigint (foreign key to weekly_cycles.id, not null)
- created_at: timestamp (default: now())

pair_members:
- pair_id: bigint (foreign key to pairs.id on delete cascade, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- primary key (pair_id, user_id)

Exactly two pair_members rows per pair. A user should belong to at most one
pair per weekly cycle; the pairing service checks this before writing.

Remote procedures used by rooms and the dashboard (security definer, so they
bypass RLS but check membership themselves):

get_pair_members_secure(p_pair_id bigint, uid uuid)
    returns table (user_id uuid, full_name text, email text)
    -- empty unless uid is one of the pair's members

get_active_pair_for_user(uid uuid)
    returns table (pair_id bigint)
    -- the caller's pair under the active weekly cycle, if any
"""
