# Supabase table: winners
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

winners:
- id: uuid (primary key)
- equb_id: uuid (foreign key to equbs.id, not null, on delete cascade)
- user_id: uuid (foreign key to profiles.id, not null)
- win_date: date (not null)
- round: integer (not null) - 1-based, one row per draw
- unique constraint on (equb_id, round)
"""
