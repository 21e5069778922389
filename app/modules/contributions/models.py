# Supabase table: contributions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

contributions:
- id: uuid (primary key)
- equb_id: uuid (foreign key to equbs.id, not null, on delete cascade)
- user_id: uuid (foreign key to profiles.id, not null)
- date: timestamp (default: now())
- amount: numeric (not null) - copied from equbs.contribution_amount at submission
- status: text (not null, default: 'pending') - values: paid, pending, late
"""
