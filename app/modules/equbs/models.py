# Supabase table: equbs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

equbs:
- id: uuid (primary key)
- created_at: timestamp (default: now())
- created_by: uuid (foreign key to profiles.id, not null) - admin who created the equb
- name: text (not null)
- equb_type: equb_type enum (not null) - values: Employee, Drivers, Merchants,
  Cooking Oven, TV, Fridge, Washing Machine
- contribution_amount: numeric (not null)
- cycle: text (not null) - values: daily, weekly, monthly
- max_members: integer (not null)
- status: equb_status enum (not null, default: 'Open') - values: Open, Active, Completed
- start_date: date (not null)
- next_due_date: date (nullable)
- winnable_amount: numeric (not null) - contribution_amount * max_members
"""
