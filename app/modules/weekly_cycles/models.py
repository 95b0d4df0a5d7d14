# Supabase table: weekly_cycles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

weekly_cycles:
- id: bigint (primary key, identity)
- week_start_date: date (not null) - a Monday for generated weeks
- week_end_date: date (not null) - the following Sunday for generated weeks
- status: text (not null, default: 'planned') - values: planned, active, archived
- created_at: timestamp (default: now())

Optional partial unique index enforcing a single active week:
    create unique index weekly_cycles_one_active
        on weekly_cycles (status) where status = 'active';

Pairs reference weekly_cycles.id (see app/modules/pairing/models.py).
"""
