# Supabase tables: goals, goal_updates, comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

goals:
- id: bigint (primary key, identity)
- pair_id: bigint (foreign key to pairs.id on delete cascade, not null)
- owner_user_id: uuid (foreign key to profiles.id, not null)
- title: text (not null)
- notes: text (nullable)
- status: text (not null, default: 'not_started') - values: not_started, in_progress, blocked, done
- progress: int (not null, default: 0, check progress between 0 and 100)
- created_at: timestamp (default: now())

goal_updates (check-ins, append-only):
- id: bigint (primary key, identity)
- goal_id: bigint (foreign key to goals.id on delete cascade, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- progress: int (nullable, check progress between 0 and 100)
- body: text (nullable)
- created_at: timestamp (default: now())

comments (append-only):
- id: bigint (primary key, identity)
- pair_id: bigint (foreign key to pairs.id on delete cascade, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- body: text (not null)
- created_at: timestamp (default: now())

RLS: rows are visible to the two members of the owning pair; goals are
updatable only by owner_user_id.
"""
