# Supabase table: memberships
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

memberships:
- user_id: uuid (foreign key to profiles.id, not null)
- equb_id: uuid (foreign key to equbs.id, not null, on delete cascade)
- status: text (not null, default: 'pending') - values: pending, approved, rejected
- join_date: timestamp (default: now())
- primary key on (user_id, equb_id) - re-applying after a rejection upserts the same row
"""
