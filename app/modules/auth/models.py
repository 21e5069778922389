# Supabase Auth
# Accounts live in auth.users and are managed entirely by Supabase Auth.
# Sign-up passes full_name, phone and location as user metadata; a database
# trigger copies them into public.profiles (see app/modules/profiles/models.py)
# with role 'member'. Admins are promoted by editing profiles.role directly.

"""
Supabase Auth calls used by AuthService:
- auth.sign_up() - register with email/password and profile metadata
- auth.sign_in_with_password() - issue a session (access_token)
- auth.get_user() - resolve a bearer token to the auth user
- auth.sign_out() - end the session

email_confirmed_at on the auth user drives the is_email_confirmed flag
returned by /auth/me.
"""
