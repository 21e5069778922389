# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id) - created by a sign-up trigger
  from the full_name, phone and location passed as user metadata
- full_name: text (not null)
- email: text (nullable) - synced from auth.users
- phone: text (nullable)
- location: text (nullable)
- role: app_role enum (not null, default: 'member') - values: admin, member
- wallet_balance: numeric (not null, default: 0)
- is_active: boolean (not null, default: true)
- updated_at: timestamp (nullable)

Note: Authentication data (password, tokens) is stored in auth.users table
managed by Supabase Auth. This table only stores profile information.
"""
